"""Reads the dependency versions a buildpack already ships."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from yarnmeta.core.errors import ParseError

logger = logging.getLogger(__name__)


def known_versions(buildpack_toml: Path, dependency_id: str) -> set[str]:
    """Versions of *dependency_id* listed under ``[[metadata.dependencies]]``.

    A missing file means nothing is known yet and yields an empty set.
    """
    if not buildpack_toml.exists():
        logger.info("%s does not exist; treating every version as new", buildpack_toml)
        return set()

    try:
        data = tomllib.loads(buildpack_toml.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ParseError(f"{buildpack_toml} is not valid TOML: {exc}") from exc

    dependencies = data.get("metadata", {}).get("dependencies", [])
    return {
        str(dep["version"])
        for dep in dependencies
        if isinstance(dep, dict) and dep.get("id") == dependency_id and "version" in dep
    }
