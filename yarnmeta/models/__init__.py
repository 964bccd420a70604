"""yarnmeta data models: all Pydantic v2, all frozen (immutable)."""

from yarnmeta.models.dependency import DependencyMetadata, RetrievalReport, build_cpe
from yarnmeta.models.releases import (
    Asset,
    AssetSidecar,
    Release,
    parse_asset_sidecar,
    parse_release,
    parse_releases,
)
from yarnmeta.models.verification import KeyAttempt, KeyOutcome, VerificationResult
from yarnmeta.models.versioning import SemanticVersion

__all__ = [
    # versioning
    "SemanticVersion",
    # releases
    "Asset",
    "AssetSidecar",
    "Release",
    "parse_asset_sidecar",
    "parse_release",
    "parse_releases",
    # verification
    "KeyAttempt",
    "KeyOutcome",
    "VerificationResult",
    # dependency
    "DependencyMetadata",
    "RetrievalReport",
    "build_cpe",
]
