"""Data commands for EdgeLab CLI.

Handles CSV export and import of the trade journal.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel

console = Console()


def _get_journal():
    """Get the trade journal backed by the configured database."""
    from edgelab.config import get_db_path, load_config
    from edgelab.db.journal import TradeJournal
    from edgelab.db.store import DataStore

    return TradeJournal(DataStore(get_db_path(load_config())))


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def export_trades(path: Path) -> None:
    """Export all trades to a CSV file.

    \b
    Examples:
      edgelab export trades.csv
    """
    from edgelab.db.export import export_csv

    journal = _get_journal()

    try:
        count = export_csv(journal.trades, path)
    except OSError as e:
        console.print(Panel(
            f"[red]Failed to write {path}:[/red]\n\n{str(e)}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    console.print(f"[green]✓ Exported {count} trades to {path}[/green]")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_trades(path: Path) -> None:
    """Import trades from a CSV file.

    Rows whose ID is already in the journal replace the stored trade.
    Invalid rows are skipped and listed.

    \b
    Examples:
      edgelab import trades.csv
    """
    import pandas as pd

    from edgelab.db.export import import_csv

    try:
        trades, errors = import_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        console.print(Panel(
            f"[red]Failed to read {path}:[/red]\n\n{str(e)}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    journal = _get_journal()
    added = updated = 0

    for trade in trades:
        if journal.get(trade.id) is None:
            added += 1
        else:
            updated += 1
        journal.add(trade)

    console.print(f"[green]✓ Imported {added} new and {updated} updated trades[/green]")

    if errors:
        console.print(Panel(
            "\n".join(errors),
            title=f"[bold yellow]Skipped {len(errors)} rows[/bold yellow]",
            border_style="yellow",
        ))
