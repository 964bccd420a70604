"""``yarnmeta versions``: list eligible upstream versions."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from yarnmeta.core.errors import RetrievalError
from yarnmeta.config import settings
from yarnmeta.core.orchestrator import Orchestrator

console = Console()
err_console = Console(stderr=True)


def versions_cmd(
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print a JSON array instead of a table.",
    ),
) -> None:
    """List every eligible upstream version, oldest first.

    Prereleases, versions below the eligibility floor and tags that are
    not semantic versions are left out.
    """
    orchestrator = Orchestrator(settings)
    try:
        versions = orchestrator.get_all_versions()
    except RetrievalError as exc:
        err_console.print(f"[bold red]Could not list versions:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps([str(v) for v in versions]))
        return

    s = orchestrator.settings
    table = Table(title=f"Eligible {s.owner}/{s.repo} versions")
    table.add_column("Version", style="cyan")
    table.add_column("Tag", style="green")
    for version in versions:
        table.add_row(str(version), f"{s.tag_prefix}{version}")
    console.print(table)
    console.print(f"[dim]{len(versions)} versions (minimum {s.minimum_version})[/dim]")
