"""The dependency metadata record handed to the downstream installer."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CHECKSUM_RE = re.compile(r"^sha256:[0-9a-f]{64}$")


def build_cpe(vendor: str, product: str, version: str) -> str:
    """Return the CPE 2.3 application identifier for *product* at *version*."""
    return f"cpe:2.3:a:{vendor}:{product}:{version}:*:*:*:*:*:*:*"


class DependencyMetadata(BaseModel):
    """Verified, checksummed description of one upstream release.

    Created once per successful pipeline run and never mutated afterwards.
    Serialize with ``model_dump(mode="json", by_alias=True)`` to get the
    keys the installer reads (``source-checksum``, ``strip-components``...).

    Examples
    --------
    >>> record = DependencyMetadata(
    ...     id="yarn",
    ...     name="Yarn",
    ...     version="1.22.19",
    ...     cpe=build_cpe("yarnpkg", "yarn", "1.22.19"),
    ...     checksum="sha256:" + "0" * 64,
    ...     source_checksum="sha256:" + "0" * 64,
    ...     source="https://example.com/yarn-v1.22.19.tar.gz",
    ...     uri="https://example.com/yarn-v1.22.19.tar.gz",
    ...     purl="pkg:generic/yarn@1.22.19",
    ... )
    >>> record.strip_components
    1
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    version: str
    cpe: str
    checksum: str
    source_checksum: str = Field(alias="source-checksum")
    source: str
    uri: str
    purl: str
    licenses: list[str] = Field(default_factory=list)
    stacks: list[str] = Field(default_factory=list)
    strip_components: int = Field(default=1, ge=0, alias="strip-components")
    deprecation_date: datetime | None = None

    @field_validator("checksum", "source_checksum")
    @classmethod
    def _algorithm_prefixed(cls, value: str) -> str:
        if not _CHECKSUM_RE.match(value):
            raise ValueError(f"checksum must look like sha256:<64 hex>, got {value!r}")
        return value

    def to_json_dict(self) -> dict:
        """Plain JSON-ready dict using the installer's key names."""
        return self.model_dump(mode="json", by_alias=True)


class RetrievalReport(BaseModel):
    """Outcome of a batch run over several versions."""

    model_config = ConfigDict(frozen=True)

    dependencies: list[DependencyMetadata] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # versions without source code

    def to_json_list(self) -> list[dict]:
        return [dep.to_json_dict() for dep in self.dependencies]
