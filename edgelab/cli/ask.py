"""Ask command for EdgeLab CLI.

Sends questions about the trade journal to the trading coach and
keeps the conversation history.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

console = Console()


def _get_journal():
    """Get the trade journal backed by the configured database."""
    from edgelab.config import get_db_path, load_config
    from edgelab.db.journal import TradeJournal
    from edgelab.db.store import DataStore

    return TradeJournal(DataStore(get_db_path(load_config())))


def _citation_line(citations) -> str:
    if citations is None:
        return ""
    color = {"high": "green", "medium": "yellow", "low": "red"}[citations.confidence_level]
    line = (
        f"[dim]Based on {citations.sample_size} trades · "
        f"confidence:[/dim] [{color}]{citations.confidence_level}[/{color}]"
    )
    if citations.trade_ids:
        line += f"\n[dim]Cited: {', '.join(tid[:8] for tid in citations.trade_ids)}[/dim]"
    return line


def _print_reply(content: str, citations) -> None:
    console.print(Panel(
        Markdown(content),
        title="[bold cyan]AI Response[/bold cyan]",
        border_style="cyan",
    ))
    line = _citation_line(citations)
    if line:
        console.print(line)


@click.command()
@click.argument("question")
@click.option(
    "--image", "images",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Attach a chart screenshot (repeatable).",
)
@click.option("--offline", is_flag=True, help="Answer from local statistics without calling the model.")
def ask(question: str, images: tuple[Path, ...], offline: bool) -> None:
    """Ask the trading coach about your journal.

    QUESTION is your natural language question. Without an API key
    the answer is computed locally from your trade statistics.

    \b
    Examples:
      edgelab ask "Which TP type has the best expectancy?"
      edgelab ask "Do my impulse trades lose money?"
      edgelab ask "What went wrong here?" --image chart.png
      edgelab ask "Which session is best?" --offline
    """
    from edgelab.ai.base import configure_api_key
    from edgelab.ai.coach import TradingCoach, local_answer
    from edgelab.config import get_config_path, load_config
    from edgelab.models import ChatMessage

    has_key = not offline and configure_api_key(load_config())

    if images and not has_key:
        console.print(Panel(
            "[red]OpenAI API key not configured.[/red]\n\n"
            "Image questions need the model. Please add your OpenAI API key to:\n"
            f"[cyan]{get_config_path()}[/cyan]",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    journal = _get_journal()
    trades = journal.trades
    journal.add_message(ChatMessage(role="user", content=question))

    if not has_key:
        if not offline:
            console.print("[dim]No OpenAI API key configured; answering from local statistics.[/dim]\n")
        reply = local_answer(question, trades)
    else:
        from edgelab.ai.base import image_input
        from edgelab.ai.vision import MAX_IMAGE_BYTES, ImageTooLargeError, guess_mime_type

        try:
            parts = []
            for path in images:
                data = path.read_bytes()
                if len(data) > MAX_IMAGE_BYTES:
                    raise ImageTooLargeError(len(data))
                parts.append(image_input(data, guess_mime_type(path)))

            console.print(f"[dim]Analyzing {len(trades)} trades...[/dim]\n")
            reply = TradingCoach().ask(question, trades, images=parts or None)
        except Exception as e:
            console.print(Panel(
                f"[red]Error processing question: {e}[/red]",
                title="[bold red]Error[/bold red]",
                border_style="red",
            ))
            raise SystemExit(1)

    journal.add_message(
        ChatMessage(role="assistant", content=reply.content, citations=reply.citations)
    )
    _print_reply(reply.content, reply.citations)


@click.command()
@click.option("--clear", is_flag=True, help="Delete the conversation history.")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show only the last N messages.")
def chat(clear: bool, limit) -> None:
    """Show the conversation with the trading coach."""
    journal = _get_journal()

    if clear:
        journal.clear_chat()
        console.print("[green]✓ Chat history cleared[/green]")
        return

    messages = journal.chat_messages
    if limit:
        messages = messages[-limit:]

    if not messages:
        console.print(Panel(
            "[dim]No messages yet. Start with [cyan]edgelab ask \"...\"[/cyan][/dim]",
            title="[bold]Chat[/bold]",
            border_style="dim",
        ))
        return

    for message in messages:
        stamp = message.timestamp.strftime("%Y-%m-%d %H:%M")
        if message.role == "user":
            console.print(f"\n[bold green]You[/bold green] [dim]{stamp}[/dim]")
            console.print(message.content)
        else:
            console.print(f"\n[bold cyan]Coach[/bold cyan] [dim]{stamp}[/dim]")
            console.print(Markdown(message.content))
            line = _citation_line(message.citations)
            if line:
                console.print(line)
