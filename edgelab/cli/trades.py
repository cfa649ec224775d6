"""Journal commands for EdgeLab CLI.

Handles logging, editing, listing and daily review of trades.
"""

from datetime import date, datetime
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from edgelab.models.trade import (
    BE_TYPES,
    BREAK_ALIGNMENTS,
    BREAK_TYPES,
    DIRECTIONS,
    EMOTIONAL_STATES,
    INSTRUMENTS,
    INTENTS,
    SESSIONS,
    SL_TYPES,
    TP_TYPES,
)

console = Console()

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _get_journal():
    """Get the trade journal backed by the configured database."""
    from edgelab.config import get_db_path, load_config
    from edgelab.db.journal import TradeJournal
    from edgelab.db.store import DataStore

    return TradeJournal(DataStore(get_db_path(load_config())))


def _error(message: str, title: str = "Error") -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def _format_r(value: float) -> str:
    color = "green" if value > 0 else "red" if value < 0 else "white"
    sign = "+" if value > 0 else ""
    return f"[{color}]{sign}{value:.2f}R[/{color}]"


def trade_table(trades: list, title: str = "Trades") -> Table:
    """Render trades as a rich table."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Inst", style="bold")
    table.add_column("Side")
    table.add_column("Session")
    table.add_column("Result", justify="right")
    table.add_column("Intent")
    table.add_column("Break")
    table.add_column("TP")
    table.add_column("SL")
    table.add_column("BE")

    for trade in trades:
        side_color = "green" if trade.direction == "Long" else "red"
        table.add_row(
            trade.id[:8],
            trade.date.isoformat(),
            trade.time,
            trade.instrument,
            f"[{side_color}]{trade.direction}[/{side_color}]",
            trade.session,
            _format_r(trade.result_r),
            trade.intent,
            trade.break_type or "-",
            trade.tp_type or "-",
            trade.sl_type or "-",
            trade.be_type or "-",
        )

    return table


def _resolve_trade_id(journal, trade_id: str) -> str:
    """Accept a full ID or a unique prefix as shown in tables."""
    if journal.get(trade_id) is not None:
        return trade_id

    matches = [t.id for t in journal.trades if t.id.startswith(trade_id)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        _error(f"Trade not found: {trade_id}")
    _error(f"Ambiguous trade ID '{trade_id}' matches {len(matches)} trades")


def _trade_fields(**options: Any) -> dict[str, Any]:
    """Map CLI option values onto Trade fields, skipping unset ones."""
    fields = {
        "instrument": options.get("instrument"),
        "date": options["trade_date"].date() if options.get("trade_date") else None,
        "time": options.get("entry_time"),
        "session": options.get("session"),
        "direction": options.get("direction"),
        "size": options.get("size"),
        "entry_price": options.get("entry"),
        "stop_loss_price": options.get("stop"),
        "take_profit_price": options.get("target"),
        "result_r": options.get("result"),
        "result_ticks": options.get("ticks"),
        "result_dollars": options.get("dollars"),
        "duration": options.get("duration"),
        "intent": options.get("intent"),
        "confidence_at_entry": options.get("confidence"),
        "emotional_states": list(options["emotions"]) if options.get("emotions") else None,
        "tp_type": options.get("tp_type"),
        "sl_type": options.get("sl_type"),
        "be_type": options.get("be_type"),
        "break_type": options.get("break_type"),
        "break_alignment": options.get("alignment"),
        "notes": options.get("notes"),
        "tags": list(options["tags"]) if options.get("tags") else None,
    }
    return {name: value for name, value in fields.items() if value is not None}


def trade_options(required: bool):
    """Shared options for add and edit."""

    def decorator(func):
        options = [
            click.option("-i", "--instrument", type=click.Choice(INSTRUMENTS), required=required, help="Futures instrument."),
            click.option("-d", "--direction", type=click.Choice(DIRECTIONS), required=required, help="Trade direction."),
            click.option("-t", "--time", "entry_time", required=required, help="Entry time as HH:MM."),
            click.option("-r", "--result", type=float, required=required, help="Result in R multiples."),
            click.option("--date", "trade_date", type=DATE_TYPE, default=None, help="Trade date (YYYY-MM-DD). Defaults to today."),
            click.option("-s", "--session", type=click.Choice(SESSIONS), default=None, help="Session. Inferred from time when omitted."),
            click.option("--size", type=click.IntRange(min=1), default=None, help="Contracts traded."),
            click.option("--entry", type=float, default=None, help="Entry price."),
            click.option("--stop", type=float, default=None, help="Stop loss price."),
            click.option("--target", type=float, default=None, help="Take profit price."),
            click.option("--ticks", type=int, default=None, help="Result in ticks."),
            click.option("--dollars", type=float, default=None, help="Result in dollars."),
            click.option("--duration", type=click.IntRange(min=0), default=None, help="Holding time in minutes."),
            click.option("--intent", type=click.Choice(INTENTS), default=None, help="Trade intent."),
            click.option("--confidence", type=click.IntRange(1, 5), default=None, help="Confidence at entry (1-5)."),
            click.option("--emotion", "emotions", type=click.Choice(EMOTIONAL_STATES), multiple=True, help="Emotional state (repeatable)."),
            click.option("--tp-type", type=click.Choice(TP_TYPES), default=None, help="Take profit style."),
            click.option("--sl-type", type=click.Choice(SL_TYPES), default=None, help="Stop loss style."),
            click.option("--be-type", type=click.Choice(BE_TYPES), default=None, help="Break-even style."),
            click.option("--break-type", type=click.Choice(BREAK_TYPES), default=None, help="Price break type."),
            click.option("--alignment", type=click.Choice(BREAK_ALIGNMENTS), default=None, help="Higher-timeframe alignment."),
            click.option("--notes", default=None, help="Free-form notes."),
            click.option("--tag", "tags", multiple=True, help="Tag (repeatable)."),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


@click.command()
@trade_options(required=True)
def add(**options: Any) -> None:
    """Log a new trade.

    \b
    Examples:
      edgelab add -i ES -d Long -t 09:45 -r 2
      edgelab add -i NQ -d Short -t 13:10 -r -1 --intent Impulse --emotion FOMO
      edgelab add -i CL -d Long -t 04:15 -r 1.5 --tp-type Runner --date 2024-03-01
    """
    import pytz
    from pydantic import ValidationError

    from edgelab.analytics.sessions import infer_session
    from edgelab.config import get_timezone, load_config
    from edgelab.models import Trade

    fields = _trade_fields(**options)
    fields.setdefault("date", date.today())

    if "session" not in fields:
        try:
            fields["session"] = infer_session(
                fields["time"], tz=get_timezone(load_config()), on_date=fields["date"]
            )
        except pytz.UnknownTimeZoneError as e:
            _error(f"Unknown time zone in config: {e}", "Invalid Trade")
        except ValueError as e:
            _error(str(e), "Invalid Trade")

    try:
        trade = Trade(**fields)
    except ValidationError as e:
        _error(str(e), "Invalid Trade")

    journal = _get_journal()
    journal.add(trade)

    if journal.pending:
        console.print("[yellow]Saved locally; database write failed. Run with -v for details.[/yellow]")

    console.print(
        f"[green]✓ Logged {trade.direction} {trade.instrument} "
        f"({trade.session}) {_format_r(trade.result_r)}[/green] [dim]{trade.id}[/dim]"
    )


@click.command()
@click.argument("trade_id")
@trade_options(required=False)
def edit(trade_id: str, **options: Any) -> None:
    """Update fields of a trade.

    TRADE_ID is the trade ID or a unique prefix of it.

    \b
    Examples:
      edgelab edit 3f2a1c --tp-type Runner
      edgelab edit 3f2a1c -r 1.5 --notes "Moved stop to BE early"
    """
    from pydantic import ValidationError

    updates = _trade_fields(**options)
    if not updates:
        _error("Nothing to update. Pass at least one field option.")

    journal = _get_journal()
    trade_id = _resolve_trade_id(journal, trade_id)

    try:
        trade = journal.update(trade_id, **updates)
    except ValidationError as e:
        _error(str(e), "Invalid Trade")

    console.print(f"[green]✓ Updated {', '.join(sorted(updates))} on trade {trade.id[:8]}[/green]")


@click.command()
@click.argument("trade_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation.")
def delete(trade_id: str, yes: bool) -> None:
    """Delete a trade.

    TRADE_ID is the trade ID or a unique prefix of it. Screenshots
    linked to the trade are kept but unlinked.
    """
    journal = _get_journal()
    trade_id = _resolve_trade_id(journal, trade_id)
    trade = journal.get(trade_id)

    if not yes:
        click.confirm(
            f"Delete {trade.direction} {trade.instrument} on {trade.date} {trade.time}?",
            abort=True,
        )

    journal.delete(trade_id)
    console.print(f"[green]✓ Deleted trade {trade_id[:8]}[/green]")


@click.command()
@click.option("--date", "trade_date", type=DATE_TYPE, default=None, help="Only trades on this date.")
@click.option("--from", "start", type=DATE_TYPE, default=None, help="Start date (inclusive).")
@click.option("--to", "end", type=DATE_TYPE, default=None, help="End date (inclusive).")
@click.option("--instrument", "instruments", type=click.Choice(INSTRUMENTS), multiple=True, help="Filter by instrument.")
@click.option("--session", "sessions", type=click.Choice(SESSIONS), multiple=True, help="Filter by session.")
@click.option("--intent", "intents", type=click.Choice(INTENTS), multiple=True, help="Filter by intent.")
@click.option("--break-type", "break_types", type=click.Choice(BREAK_TYPES), multiple=True, help="Filter by break type.")
@click.option("--tp-type", "tp_types", type=click.Choice(TP_TYPES), multiple=True, help="Filter by TP type.")
@click.option("--sl-type", "sl_types", type=click.Choice(SL_TYPES), multiple=True, help="Filter by SL type.")
@click.option("--be-type", "be_types", type=click.Choice(BE_TYPES), multiple=True, help="Filter by BE type.")
@click.option(
    "--sort",
    type=click.Choice(["date", "result"]),
    default="date",
    show_default=True,
    help="Sort order (result sorts best first).",
)
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show at most N trades.")
def trades(
    trade_date: Optional[datetime],
    start: Optional[datetime],
    end: Optional[datetime],
    sort: str,
    limit: Optional[int],
    **filters: tuple[str, ...],
) -> None:
    """List trades with optional filters.

    Classifier filters (break, TP, SL, BE type) keep trades that
    have not been classified yet.

    \b
    Examples:
      edgelab trades --date 2024-03-01
      edgelab trades --session "NY AM" --tp-type Runner
      edgelab trades --sort result -n 10
    """
    from edgelab.analytics.filters import TradeFilter

    if trade_date:
        start = end = trade_date

    trade_filter = TradeFilter(
        **{name: list(values) for name, values in filters.items()},
        start=start.date() if start else None,
        end=end.date() if end else None,
    )

    journal = _get_journal()
    selected = journal.filtered(trade_filter)

    if not selected:
        console.print(Panel(
            "[dim]No trades found[/dim]",
            title="[bold]Trades[/bold]",
            border_style="dim",
        ))
        return

    if sort == "result":
        selected = sorted(selected, key=lambda t: t.result_r, reverse=True)
    if limit:
        selected = selected[:limit]

    console.print(trade_table(selected, title=f"Trades ({len(selected)})"))


@click.command()
@click.argument("day", type=DATE_TYPE, required=False)
def day(day: Optional[datetime]) -> None:
    """Show the summary for a trading day.

    DAY defaults to today (YYYY-MM-DD).
    """
    target = day.date() if day else date.today()
    summary = _get_journal().day_summary(target)

    if not summary.trade_count:
        console.print(Panel(
            f"[dim]No trades on {target.isoformat()}[/dim]",
            title="[bold]Day Summary[/bold]",
            border_style="dim",
        ))
        return

    border = "green" if summary.total_r >= 0 else "red"
    console.print(Panel(
        f"[bold]Total:[/bold] {_format_r(summary.total_r)}\n"
        f"[bold]Trades:[/bold] {summary.trade_count}\n"
        f"[bold]Win Rate:[/bold] {summary.win_rate:.1f}%\n"
        f"[bold]Avg R:[/bold] {_format_r(summary.avg_r)}\n"
        f"[bold]Max Drawdown:[/bold] [red]{summary.max_drawdown:.2f}R[/red]",
        title=f"[bold]{target.strftime('%A %Y-%m-%d')}[/bold]",
        border_style=border,
    ))
    console.print(trade_table(summary.trades, title="Trades"))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@click.command("calendar")
@click.argument("month", type=click.DateTime(formats=["%Y-%m"]), required=False)
def calendar_view(month: Optional[datetime]) -> None:
    """Show a month calendar of daily results.

    MONTH defaults to the current month (YYYY-MM). Each day shows
    its total R and wins/losses.

    \b
    Examples:
      edgelab calendar
      edgelab calendar 2024-03
    """
    from calendar import Calendar

    from edgelab.analytics.performance import month_summary

    target = month.date() if month else date.today()
    summary = month_summary(_get_journal().trades, target.year, target.month)

    table = Table(
        title=target.strftime("%B %Y"),
        show_header=True,
        header_style="bold cyan",
        show_lines=True,
    )
    for name in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"):
        table.add_column(name, justify="center", min_width=7)

    for week in Calendar(firstweekday=6).monthdatescalendar(summary.year, summary.month):
        cells = []
        for day in week:
            cell = summary.day(day)
            if cell is None:
                cells.append(f"[dim]{day.day}[/dim]")
            elif not cell.trade_count:
                cells.append(f"{day.day}")
            else:
                color = "green" if cell.total_r > 0 else "red" if cell.total_r < 0 else "white"
                sign = "+" if cell.total_r > 0 else ""
                cells.append(
                    f"[bold]{day.day}[/bold]\n"
                    f"[{color}]{sign}{cell.total_r:.1f}R[/{color}]\n"
                    f"[green]{cell.wins}W[/green] [red]{cell.losses}L[/red]"
                )
        table.add_row(*cells)

    console.print(table)

    prev_year, prev_month = _shift_month(summary.year, summary.month, -1)
    next_year, next_month = _shift_month(summary.year, summary.month, 1)
    console.print(
        f"[bold]Month:[/bold] {_format_r(summary.total_r)} over {summary.trade_count} trades\n"
        f"[dim]Previous: edgelab calendar {prev_year}-{prev_month:02d}  "
        f"Next: edgelab calendar {next_year}-{next_month:02d}[/dim]"
    )
