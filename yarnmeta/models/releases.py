"""Typed views of the GitHub Releases API payloads we consume.

Only the fields the pipeline reads are declared; everything else in the
upstream JSON is ignored.  Required fields are required; a payload that
omits one fails validation instead of defaulting to an empty string.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from yarnmeta.core.errors import ParseError


class Asset(BaseModel):
    """A single file attached to a release, looked up by exact ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str  # API URL; GET with the JSON accept header yields the sidecar
    browser_download_url: str
    id: int | None = None
    size: int | None = None


class Release(BaseModel):
    """One published upstream release and its ordered asset listing."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    name: str | None = None
    draft: bool = False
    prerelease: bool = False
    assets: list[Asset] = Field(default_factory=list)

    def find_asset(self, name: str) -> Asset | None:
        """Return the asset called exactly *name*, or ``None``."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None


class AssetSidecar(BaseModel):
    """JSON document describing one asset, served from the asset API URL.

    ``browser_download_url`` is the authoritative public URL recorded as the
    dependency's source.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    browser_download_url: str


def parse_release(payload: Any) -> Release:
    """Validate one release object from the API or raise ``ParseError``."""
    try:
        return Release.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"malformed release payload: {exc}") from exc


def parse_releases(payload: Any) -> list[Release]:
    """Validate one page of the release listing."""
    if not isinstance(payload, list):
        raise ParseError(
            f"expected a JSON array of releases, got {type(payload).__name__}"
        )
    return [parse_release(item) for item in payload]


def parse_asset_sidecar(payload: Any) -> AssetSidecar:
    """Validate an asset sidecar or raise ``ParseError``."""
    try:
        return AssetSidecar.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"malformed asset metadata: {exc}") from exc
