"""Runtime configuration: env-driven via pydantic-settings.

Every setting can be overridden with a ``YARNMETA_*`` environment variable
or a ``.env`` file in the working directory.  List settings take JSON::

    export YARNMETA_LOG_LEVEL=DEBUG
    export YARNMETA_REQUEST_TIMEOUT_SECONDS=10
    export YARNMETA_PUBLIC_KEY_URLS='["https://dl.yarnpkg.com/debian/pubkey.gpg"]'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

YARN_PUBLIC_KEY_URL = "https://dl.yarnpkg.com/debian/pubkey.gpg"

DEFAULT_STACKS = [
    "io.buildpacks.stacks.bionic",
    "io.buildpacks.stacks.jammy",
]


class RetrievalSettings(BaseSettings):
    """Settings for one retrieval run."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="YARNMETA_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Upstream
    github_api_url: str = "https://api.github.com"
    github_token: str = ""  # optional, raises the API rate limit
    owner: str = "yarnpkg"
    repo: str = "yarn"
    tag_prefix: str = "v"
    page_size: int = Field(default=100, ge=1, le=100)

    # Dependency identity
    dependency_id: str = "yarn"
    dependency_name: str = "Yarn"
    cpe_vendor: str = "yarnpkg"
    stacks: list[str] = Field(default_factory=lambda: list(DEFAULT_STACKS))
    strip_components: int = 1

    # Releases before 0.7.0 never published a source tarball
    minimum_version: str = "0.7.0"

    # Trust: publisher keys are fetched at verification time, never pinned
    public_key_urls: list[str] = Field(default_factory=lambda: [YARN_PUBLIC_KEY_URL])
    gpg_binary: str = "gpg"

    # Network bounds
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    deadline_seconds: float | None = None  # overall budget for one run

    # Parent directory for per-run temporary downloads (system temp if unset)
    work_dir: Path | None = None


# Module-level singleton: import as `from yarnmeta.config import settings`
settings = RetrievalSettings()
