"""Semantic version model used to key upstream releases."""

from __future__ import annotations

import functools
import re

from pydantic import BaseModel, ConfigDict, Field

from yarnmeta.core.errors import ParseError

# semver 2.0.0 grammar; numeric identifiers may not carry leading zeros
_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _prerelease_key(prerelease: str) -> tuple:
    # A release sorts after every prerelease of the same core version.
    if not prerelease:
        return (1,)
    parts = []
    for identifier in prerelease.split("."):
        if identifier.isdigit():
            parts.append((0, int(identifier), ""))
        else:
            parts.append((1, 0, identifier))
    return (0, tuple(parts))


@functools.total_ordering
class SemanticVersion(BaseModel):
    """A strict ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` version.

    Ordering follows semver precedence: prerelease versions sort before the
    release they precede and build metadata is ignored.

    Examples
    --------
    >>> SemanticVersion.parse("1.22.19")
    SemanticVersion(major=1, minor=22, patch=19, prerelease='', build='')
    >>> SemanticVersion.parse("1.0.0-rc.1") < SemanticVersion.parse("1.0.0")
    True
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease: str = ""
    build: str = ""

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse *text* or raise ``ParseError``; nothing is coerced."""
        match = _SEMVER_RE.match(text.strip())
        if match is None:
            raise ParseError(f"invalid semantic version: {text!r}")
        return cls(
            major=int(match["major"]),
            minor=int(match["minor"]),
            patch=int(match["patch"]),
            prerelease=match["prerelease"] or "",
            build=match["build"] or "",
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def precedence_key(self) -> tuple:
        return (self.major, self.minor, self.patch, _prerelease_key(self.prerelease))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.precedence_key() < other.precedence_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text
