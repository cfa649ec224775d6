"""Main CLI entry point for EdgeLab.

This module provides the main click group and lazy loading
for heavy imports to improve startup time.
"""

import logging

import click
from rich.console import Console

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    This improves CLI startup time by only importing
    command modules when they are actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        # First check if it's already loaded
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        # Check if it's a lazy command
        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # Match on the registered command name; function names may differ (e.g. "import")
        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


# Define lazy subcommands mapping
LAZY_SUBCOMMANDS = {
    "init": "edgelab.cli.configure",
    # Journal
    "add": "edgelab.cli.trades",
    "edit": "edgelab.cli.trades",
    "delete": "edgelab.cli.trades",
    "trades": "edgelab.cli.trades",
    "day": "edgelab.cli.trades",
    "calendar": "edgelab.cli.trades",
    # Analytics
    "stats": "edgelab.cli.stats",
    # Data
    "export": "edgelab.cli.data",
    "import": "edgelab.cli.data",
    # Screenshots
    "screenshot": "edgelab.cli.screenshots",
    "screenshots": "edgelab.cli.screenshots",
    # AI Features
    "ask": "edgelab.cli.ask",
    "chat": "edgelab.cli.ask",
    # Voice
    "waveform": "edgelab.cli.waveform",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _setup_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="edgelab")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """EdgeLab - trading journal and performance analytics for futures traders.

    Log discretionary trades, classify them from chart screenshots,
    and find your edge by session, strategy and behavior.

    \b
    Quick Start:
      edgelab init                          # Create a config file
      edgelab add -i ES -d Long -t 09:45 -r 2
      edgelab stats                         # Performance breakdown
      edgelab ask "Which TP type works best?"
    """
    _setup_logging(verbose)
    # Ensure context object exists for passing data between commands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
