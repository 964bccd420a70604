"""yarnmeta: verified dependency metadata for upstream Yarn releases.

Resolves a requested semantic version to its GitHub release, downloads the
source tarball, checks its detached OpenPGP signature against the
publisher's keys, checksums it, and emits a dependency record (CPE, PURL,
licenses, stacks) for a downstream buildpack installer.
"""

__version__ = "0.1.0"
__description__ = "Verified, checksummed dependency metadata for Yarn releases"

from yarnmeta.core.orchestrator import Orchestrator
from yarnmeta.models.dependency import DependencyMetadata
from yarnmeta.cli.app import app as cli

__all__ = ["Orchestrator", "DependencyMetadata", "cli", "__version__"]
