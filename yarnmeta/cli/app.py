"""Main Typer application: imports and registers all CLI commands.

Entry point: ``yarnmeta`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from yarnmeta.cli.commands.generate import generate_cmd
from yarnmeta.cli.commands.retrieve import retrieve_cmd
from yarnmeta.cli.commands.versions import versions_cmd
from yarnmeta.config import settings

app = typer.Typer(
    name="yarnmeta",
    help="yarnmeta: verified, checksummed dependency metadata for Yarn releases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG regardless of YARNMETA_LOG_LEVEL."
    ),
) -> None:
    """Configure logging before any subcommand runs."""
    configure_logging("DEBUG" if verbose else settings.log_level)


# Register subcommands
app.command(name="versions", help="List eligible upstream versions.")(versions_cmd)
app.command(name="generate", help="Generate verified metadata for one version.")(generate_cmd)
app.command(name="retrieve", help="Generate metadata for every version not yet shipped.")(
    retrieve_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
