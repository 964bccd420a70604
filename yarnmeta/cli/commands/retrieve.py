"""``yarnmeta retrieve``: batch mode over versions the buildpack lacks.

Reads the versions already listed in ``buildpack.toml``, generates verified
records for every newer eligible upstream version, skips releases that
publish no source archive, and writes the records as a JSON array.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from yarnmeta.core.buildpack import known_versions
from yarnmeta.core.errors import RetrievalError
from yarnmeta.config import settings
from yarnmeta.core.orchestrator import Orchestrator

err_console = Console(stderr=True)


def retrieve_cmd(
    buildpack_toml: Path = typer.Option(
        Path("buildpack.toml"),
        "--buildpack-toml",
        "-b",
        help="buildpack.toml whose metadata.dependencies lists known versions.",
    ),
    output: Path = typer.Option(
        Path("metadata.json"),
        "--output",
        "-o",
        help="Where to write the JSON array of new dependency records.",
    ),
    limit: int = typer.Option(
        0,
        "--limit",
        "-n",
        min=0,
        help="Only process the newest N new versions (0 = all).",
    ),
) -> None:
    """Generate metadata for every eligible version not yet in buildpack.toml."""
    orchestrator = Orchestrator(settings)
    dependency_id = orchestrator.settings.dependency_id

    try:
        known = known_versions(buildpack_toml, dependency_id)
        pending = orchestrator.new_versions(known)
        if limit:
            pending = pending[-limit:]
        err_console.print(
            f"[cyan]{len(pending)} new {dependency_id} version(s) to retrieve[/cyan]"
        )
        report = orchestrator.retrieve(pending)
    except RetrievalError as exc:
        err_console.print(f"[bold red]Retrieval aborted:[/bold red] {exc}")
        for note in getattr(exc, "__notes__", []):
            err_console.print(f"  [red]- {note}[/red]")
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(report.to_json_list(), indent=2) + "\n", encoding="utf-8")

    for version in report.skipped:
        err_console.print(f"[yellow]skipped {version}: no source code[/yellow]")
    err_console.print(
        f"[green]Wrote {len(report.dependencies)} record(s) to {output}[/green]"
    )
