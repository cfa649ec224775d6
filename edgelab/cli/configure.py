"""Setup command for EdgeLab CLI."""

import click
from rich.console import Console
from rich.panel import Panel

console = Console()


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing config file.",
)
def init(force: bool) -> None:
    """Create the EdgeLab config file and journal database.

    Writes a template config to ~/.config/edgelab/config.toml
    (or $EDGELAB_HOME/config.toml) and initializes the database.
    """
    from edgelab.config import create_template_config, get_config_path, get_db_path, load_config
    from edgelab.db.store import DataStore

    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
    else:
        config_path = create_template_config()
        console.print(f"[green]✓ Wrote config to {config_path}[/green]")

    try:
        store = DataStore(get_db_path(load_config()))
    except Exception as e:
        console.print(Panel(
            f"[red]Failed to initialize database:[/red]\n\n{str(e)}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    console.print(Panel(
        f"[green]✓[/green] Journal database ready at [cyan]{store.db_path}[/cyan]\n\n"
        "[dim]Add your OpenAI API key to the config file to enable\n"
        "screenshot analysis and the trading coach.[/dim]",
        title="[bold green]EdgeLab Ready[/bold green]",
        border_style="green",
    ))
