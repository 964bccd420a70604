"""``yarnmeta generate VERSION``: build the verified record for one version.

Exit codes: ``0`` success, ``1`` any retrieval failure, ``3`` the release
exists but publishes no source archive.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from yarnmeta.core.errors import NoSourceCodeError, RetrievalError
from yarnmeta.config import settings
from yarnmeta.core.orchestrator import Orchestrator

err_console = Console(stderr=True)

EXIT_NO_SOURCE = 3


def generate_cmd(
    version: str = typer.Argument(
        ...,
        help="Semantic version to resolve, e.g. 1.22.19.",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the record to this file instead of stdout.",
    ),
) -> None:
    """Resolve VERSION, verify its signed source archive and print its metadata."""
    orchestrator = Orchestrator(settings)
    try:
        record = orchestrator.generate_metadata(version)
    except NoSourceCodeError as exc:
        err_console.print(f"[bold yellow]No source:[/bold yellow] {exc}")
        raise typer.Exit(code=EXIT_NO_SOURCE)
    except RetrievalError as exc:
        stage = f" [dim](stage: {exc.stage})[/dim]" if exc.stage else ""
        err_console.print(f"[bold red]Failed:[/bold red] {exc}{stage}")
        raise typer.Exit(code=1)

    payload = json.dumps(record.to_json_dict(), indent=2)
    if output is None:
        typer.echo(payload)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    err_console.print(f"[green]Wrote[/green] {record.id} {record.version} to {output}")
