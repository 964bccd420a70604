"""Error taxonomy for the retrieval pipeline.

Every failure the pipeline can surface is a ``RetrievalError`` subclass so
callers can tell "the release does not exist" apart from "the release has no
source" and from "the source failed verification".  The ``stage`` attribute
names the pipeline step that failed (``"list-releases"``, ``"download"``,
``"verify"`` ...) when the raiser knows it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yarnmeta.models.verification import VerificationResult


class RetrievalError(RuntimeError):
    """Base class for every error raised by the retrieval pipeline."""

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class NetworkError(RetrievalError):
    """Transport or HTTP failure reaching an upstream endpoint.

    Never retried internally.  ``url`` identifies the call that failed and
    ``status_code`` is set when the server answered with a non-2xx status.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.url = url
        self.status_code = status_code


class AssetNotFound(RetrievalError):
    """A release does not publish an asset with the requested name."""

    def __init__(self, asset_name: str, *, tag: str = "", stage: str | None = None) -> None:
        where = f" in release {tag}" if tag else ""
        super().__init__(f"asset not found: {asset_name}{where}", stage=stage)
        self.asset_name = asset_name
        self.tag = tag


class ParseError(RetrievalError):
    """Upstream data (a tag, a release listing, an asset sidecar) is malformed."""


class VersionNotFound(RetrievalError):
    """No eligible release matches the requested version."""

    def __init__(self, version: str, *, reason: str = "", stage: str | None = None) -> None:
        message = f"could not find yarn version {version}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, stage=stage)
        self.version = version


class NoSourceCodeError(RetrievalError):
    """The release exists but publishes no source archive.

    Expected for early binary-only releases; batch callers skip it instead
    of aborting.
    """

    def __init__(self, version: str, *, stage: str | None = "download") -> None:
        super().__init__(f"no source code available for version {version}", stage=stage)
        self.version = version


class VerificationError(RetrievalError):
    """No trusted key validated the artifact's detached signature.

    ``result`` holds the per-key outcomes; the message itself never says
    whether keys were malformed or merely non-matching.
    """

    def __init__(
        self,
        message: str = "could not establish trust in the artifact signature",
        *,
        result: VerificationResult | None = None,
        stage: str | None = "verify",
    ) -> None:
        super().__init__(message, stage=stage)
        self.result = result


class ArtifactIOError(RetrievalError):
    """Local filesystem failure while handling a downloaded artifact."""
