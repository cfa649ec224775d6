"""Screenshot commands for EdgeLab CLI.

Handles uploading chart screenshots, classifying them with the vision
model, and back-filling trades from the extracted labels.
"""

import shutil
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

SCREENSHOT_TYPES = ["chart", "dom", "markup", "other"]


def _get_data_store():
    """Get the data store instance."""
    from edgelab.config import get_db_path, load_config
    from edgelab.db.store import DataStore

    return DataStore(get_db_path(load_config()))


def _require_api_key() -> None:
    """Exit with an error panel unless an OpenAI key is configured."""
    from edgelab.ai.base import configure_api_key
    from edgelab.config import get_config_path, load_config

    if not configure_api_key(load_config()):
        console.print(Panel(
            "[red]OpenAI API key not configured.[/red]\n\n"
            "Please add your OpenAI API key to:\n"
            f"[cyan]{get_config_path()}[/cyan]\n"
            "or set [cyan]OPENAI_API_KEY[/cyan].",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)


def _error(message: str) -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def _find_screenshot(store, screenshot_id: str):
    """Look up a screenshot by ID or unique ID prefix."""
    screenshot = store.get_screenshot(screenshot_id)
    if screenshot is not None:
        return screenshot

    matches = [s for s in store.get_screenshots() if s.id.startswith(screenshot_id)]
    if len(matches) != 1:
        _error(f"Screenshot not found: {screenshot_id}")
    return matches[0]


def _find_trade_id(store, trade_id: str) -> str:
    """Resolve a trade ID or unique ID prefix."""
    if store.get_trade(trade_id) is not None:
        return trade_id

    matches = [t.id for t in store.get_trades() if t.id.startswith(trade_id)]
    if len(matches) != 1:
        _error(f"Trade not found: {trade_id}")
    return matches[0]


def _analysis_table(analysis) -> Table:
    table = Table(show_header=True, header_style="bold cyan", title="Chart Analysis")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    rows = [
        ("Break Type", analysis.break_type),
        ("TP Type", analysis.tp_type),
        ("SL Type", analysis.sl_type),
        ("BE Type", analysis.be_type),
        ("Session", analysis.session),
        ("Market Structure", analysis.market_structure),
        ("Entry Style", analysis.entry_style),
        ("HTF/LTF Alignment", analysis.htf_ltf_alignment),
        ("Notes", analysis.notes),
    ]
    for label, value in rows:
        table.add_row(label, value or "[dim]-[/dim]")
    return table


def _analyze(store, screenshot) -> None:
    from edgelab.ai.vision import ChartAnalyzer

    analysis = ChartAnalyzer().analyze_file(Path(screenshot.url))
    store.update_screenshot_analysis(screenshot.id, analysis)
    console.print(_analysis_table(analysis))


@click.group()
def screenshot() -> None:
    """Manage chart screenshots.

    Upload screenshots, classify them with AI, and use the
    results to fill in a trade's classification.

    \b
    Examples:
      edgelab screenshot add chart1.png chart2.png --trade 3f2a1c
      edgelab screenshot add chart.png --analyze
      edgelab screenshot analyze 9b7e02
      edgelab screenshot apply 9b7e02 --trade 3f2a1c
    """
    pass


@screenshot.command("add")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--trade", "trade_id", default=None, help="Link the screenshots to this trade.")
@click.option(
    "--type", "screenshot_type",
    type=click.Choice(SCREENSHOT_TYPES),
    default="chart",
    show_default=True,
    help="Screenshot kind.",
)
@click.option("--analyze", is_flag=True, help="Classify each screenshot with AI after upload.")
def add_screenshots(paths: tuple[Path, ...], trade_id: Optional[str], screenshot_type: str, analyze: bool) -> None:
    """Upload one or more screenshots.

    Files are copied into the EdgeLab screenshot directory.
    """
    from edgelab.ai.vision import MAX_IMAGE_BYTES, guess_mime_type
    from edgelab.config import get_screenshot_dir, load_config
    from edgelab.models import TradeScreenshot
    from edgelab.models.trade import new_id

    if analyze:
        _require_api_key()

    store = _get_data_store()
    if trade_id:
        trade_id = _find_trade_id(store, trade_id)

    target_dir = get_screenshot_dir(load_config())
    target_dir.mkdir(parents=True, exist_ok=True)

    failed = 0
    for path in paths:
        size = path.stat().st_size
        if size > MAX_IMAGE_BYTES:
            console.print(f"[red]✗ {path.name}: file too large ({size / (1024 * 1024):.2f}MB, max 20MB)[/red]")
            failed += 1
            continue

        screenshot_id = new_id()
        destination = target_dir / f"{screenshot_id}{path.suffix.lower()}"
        shutil.copyfile(path, destination)

        record = TradeScreenshot(
            id=screenshot_id,
            trade_id=trade_id,
            url=str(destination),
            filename=path.name,
            file_size=size,
            mime_type=guess_mime_type(path),
            type=screenshot_type,
        )
        store.save_screenshot(record)
        console.print(f"[green]✓ Uploaded {path.name}[/green] [dim]{screenshot_id}[/dim]")

        if analyze:
            try:
                _analyze(store, record)
            except Exception as e:
                console.print(f"[red]✗ Analysis failed for {path.name}: {e}[/red]")
                failed += 1

    if failed:
        raise SystemExit(1)


@screenshot.command("analyze")
@click.argument("screenshot_id")
def analyze_screenshot(screenshot_id: str) -> None:
    """Classify a stored screenshot with AI.

    SCREENSHOT_ID is the screenshot ID or a unique prefix of it.
    """
    _require_api_key()
    store = _get_data_store()
    record = _find_screenshot(store, screenshot_id)

    console.print(f"[dim]Analyzing {record.filename}...[/dim]")

    try:
        _analyze(store, record)
    except Exception as e:
        _error(f"Error analyzing screenshot: {e}")


@screenshot.command("apply")
@click.argument("screenshot_id")
@click.option("--trade", "trade_id", required=True, help="Trade to update.")
def apply_screenshot(screenshot_id: str, trade_id: str) -> None:
    """Fill in a trade's classification from a screenshot analysis.

    Only labels the analysis found are written; existing notes are
    kept and the analysis notes appended. The screenshot is linked
    to the trade.
    """
    store = _get_data_store()
    record = _find_screenshot(store, screenshot_id)
    trade_id = _find_trade_id(store, trade_id)

    if record.ai_extracted_data is None:
        _error(
            "Screenshot has not been analyzed yet. Run "
            f"[cyan]edgelab screenshot analyze {record.id[:8]}[/cyan] first."
        )

    try:
        trade = store.apply_analysis_to_trade(trade_id, record.ai_extracted_data, record.id)
    except ValueError as e:
        _error(str(e))

    applied = record.ai_extracted_data.classification()
    console.print(Panel(
        "\n".join(f"[bold]{name}:[/bold] {value}" for name, value in applied.items())
        or "[dim]Notes only[/dim]",
        title=f"[bold green]Updated trade {trade.id[:8]}[/bold green]",
        border_style="green",
    ))


@click.command()
@click.option("--trade", "trade_id", default=None, help="Only screenshots linked to this trade.")
@click.option("--unassigned", is_flag=True, help="Only screenshots not linked to a trade.")
def screenshots(trade_id: Optional[str], unassigned: bool) -> None:
    """List uploaded screenshots."""
    store = _get_data_store()
    if trade_id:
        trade_id = _find_trade_id(store, trade_id)

    records = store.get_screenshots(trade_id=trade_id, unassigned=unassigned)

    if not records:
        console.print(Panel(
            "[dim]No screenshots found[/dim]",
            title="[bold]Screenshots[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title=f"Screenshots ({len(records)})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("ID", style="dim")
    table.add_column("File", style="bold")
    table.add_column("Type")
    table.add_column("Trade")
    table.add_column("Uploaded")
    table.add_column("AI", justify="center")

    for record in records:
        table.add_row(
            record.id[:8],
            record.filename,
            record.type,
            record.trade_id[:8] if record.trade_id else "[dim]-[/dim]",
            record.uploaded_at.strftime("%Y-%m-%d %H:%M"),
            "[green]✓[/green]" if record.ai_processed else "[dim]-[/dim]",
        )

    console.print(table)
