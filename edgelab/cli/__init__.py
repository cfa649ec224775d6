"""CLI commands for EdgeLab.

This package provides the command-line interface for EdgeLab,
including trade logging, screenshot analysis, performance stats,
and the AI trading coach.
"""

from edgelab.cli.main import cli, main

__all__ = ["cli", "main"]
