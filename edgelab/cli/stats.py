"""Performance statistics command for EdgeLab CLI."""

import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from edgelab.models.trade import INSTRUMENTS, SESSIONS

console = Console()

STRATEGY_TITLES = {
    "break_type": "Break Type",
    "tp_type": "TP Type",
    "sl_type": "SL Type",
    "be_type": "BE Type",
}


def _get_journal():
    """Get the trade journal backed by the configured database."""
    from edgelab.config import get_db_path, load_config
    from edgelab.db.journal import TradeJournal
    from edgelab.db.store import DataStore

    return TradeJournal(DataStore(get_db_path(load_config())))


def _color_r(value: float) -> str:
    color = "green" if value > 0 else "red" if value < 0 else "white"
    sign = "+" if value > 0 else ""
    return f"[{color}]{sign}{value:.2f}R[/{color}]"


def _strategy_table(field: str, rows: list) -> Table:
    table = Table(
        title=f"{STRATEGY_TITLES[field]} Performance",
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column(STRATEGY_TITLES[field], style="bold")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Avg R", justify="right")
    table.add_column("Expectancy", justify="right")
    table.add_column("Max DD", justify="right")

    for row in rows:
        table.add_row(
            row.value,
            str(row.sample_size),
            f"{row.win_rate:.1f}%",
            _color_r(row.avg_r),
            _color_r(row.expectancy),
            f"[red]{row.max_drawdown:.2f}R[/red]",
        )

    return table


@click.command()
@click.option("--instrument", "instruments", type=click.Choice(INSTRUMENTS), multiple=True, help="Only these instruments.")
@click.option("--session", "sessions", type=click.Choice(SESSIONS), multiple=True, help="Only these sessions.")
@click.option("--from", "start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Start date (inclusive).")
@click.option("--to", "end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="End date (inclusive).")
@click.option("--json", "as_json", is_flag=True, help="Print the metrics document as JSON.")
def stats(instruments, sessions, start, end, as_json: bool) -> None:
    """Show performance metrics for the journal.

    Key metrics, planned vs impulse behavior, and session and
    strategy breakdowns.

    \b
    Examples:
      edgelab stats
      edgelab stats --instrument ES --from 2024-03-01
      edgelab stats --json
    """
    from edgelab.analytics.filters import TradeFilter
    from edgelab.analytics.performance import (
        STRATEGY_FIELDS,
        behavioral_split,
        format_profit_factor,
        format_risk_reward,
        metrics_payload,
        session_performance,
        strategy_performance,
        summarize,
    )

    trade_filter = TradeFilter(
        instruments=list(instruments),
        sessions=list(sessions),
        start=start.date() if start else None,
        end=end.date() if end else None,
    )
    trades = _get_journal().filtered(trade_filter)

    if as_json:
        click.echo(json.dumps(metrics_payload(trades), indent=2))
        return

    if not trades:
        console.print(Panel(
            "[dim]No trades logged yet. Use [cyan]edgelab add[/cyan] to log one.[/dim]",
            title="[bold]Performance[/bold]",
            border_style="dim",
        ))
        return

    metrics = summarize(trades)
    split = behavioral_split(trades)

    border = "green" if metrics.total_r >= 0 else "red"
    console.print(Panel(
        f"[bold]Trades:[/bold] {metrics.count} ({metrics.wins} W / {metrics.losses} L)\n"
        f"[bold]Total:[/bold] {_color_r(metrics.total_r)}\n"
        f"[bold]Avg R:[/bold] {_color_r(metrics.avg_r)}\n"
        f"[bold]Win Rate:[/bold] {metrics.win_rate:.1f}%\n"
        f"[bold]Avg Win:[/bold] {metrics.avg_win:.2f}R  "
        f"[bold]Avg Loss:[/bold] {metrics.avg_loss:.2f}R\n"
        f"[bold]Risk/Reward:[/bold] {format_risk_reward(metrics)}\n"
        f"[bold]Profit Factor:[/bold] {format_profit_factor(metrics.profit_factor)}\n"
        f"[bold]Expectancy:[/bold] {_color_r(metrics.expectancy)} per trade",
        title="[bold]Key Metrics[/bold]",
        border_style=border,
    ))

    console.print(Panel(
        f"[bold]Planned:[/bold] {split.planned.trades} trades, "
        f"{split.planned.win_rate:.1f}% win rate\n"
        f"[bold]Impulse:[/bold] {split.impulse.trades} trades, "
        f"{split.impulse.win_rate:.1f}% win rate",
        title="[bold]Behavioral Split[/bold]",
        border_style="cyan",
    ))

    session_table = Table(
        title="Session Performance",
        show_header=True,
        header_style="bold cyan",
    )
    session_table.add_column("Session", style="bold")
    session_table.add_column("Trades", justify="right")
    session_table.add_column("Total R", justify="right")
    session_table.add_column("Avg R", justify="right")
    session_table.add_column("Win Rate", justify="right")

    for session, group in session_performance(trades):
        session_table.add_row(
            session,
            str(group.trades),
            _color_r(group.total_r),
            _color_r(group.avg_r),
            f"{group.win_rate:.0f}%",
        )
    console.print(session_table)

    for field in STRATEGY_FIELDS:
        rows = strategy_performance(trades, field)
        if rows:
            console.print(_strategy_table(field, rows))

    if metrics.count < 10:
        console.print("[yellow]Small sample (< 10 trades): treat these numbers as low confidence.[/yellow]")
