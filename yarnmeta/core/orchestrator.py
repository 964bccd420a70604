"""Top-level driver for the retrieval pipeline.

The Orchestrator wires the WebClient, ReleaseLocator, VersionCatalog,
SignatureVerifier and MetadataAssembler together.  Control flows strictly
top-down: resolve the requested version to a release, then hand the
release to the assembler.  Nothing calls back upward.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from yarnmeta.config import RetrievalSettings
from yarnmeta.core.assembler import MetadataAssembler
from yarnmeta.core.errors import (
    NetworkError,
    NoSourceCodeError,
    ParseError,
    RetrievalError,
    VersionNotFound,
)
from yarnmeta.core.release_locator import ReleaseLocator
from yarnmeta.core.signature_verifier import SignatureVerifier
from yarnmeta.core.version_catalog import VersionCatalog, tag_for_version
from yarnmeta.core.web_client import Deadline, WebClient
from yarnmeta.models.dependency import DependencyMetadata, RetrievalReport
from yarnmeta.models.versioning import SemanticVersion

logger = logging.getLogger(__name__)

TagMapper = Callable[[SemanticVersion], str]


def build_web_client(settings: RetrievalSettings) -> WebClient:
    """Create the ``WebClient`` described by *settings*."""
    headers = {"User-Agent": "yarnmeta"}
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    deadline = Deadline(settings.deadline_seconds) if settings.deadline_seconds else None
    return WebClient(
        timeout=settings.request_timeout_seconds,
        deadline=deadline,
        headers=headers,
    )


class Orchestrator:
    """Resolves requested versions and drives the assembly pipeline.

    Parameters
    ----------
    settings:
        Run configuration.  Uses a fresh ``RetrievalSettings()`` if omitted.
    client, locator, verifier, assembler:
        Collaborators; built from *settings* when not supplied.
    tag_mapper:
        Maps a version to the upstream tag it is published under.  Swap it
        to follow a different tagging convention.
    """

    def __init__(
        self,
        settings: RetrievalSettings | None = None,
        *,
        client: WebClient | None = None,
        locator: ReleaseLocator | None = None,
        verifier: SignatureVerifier | None = None,
        assembler: MetadataAssembler | None = None,
        tag_mapper: TagMapper | None = None,
    ) -> None:
        self.settings = settings or RetrievalSettings()
        s = self.settings

        self.client = client or build_web_client(s)
        self.locator = locator or ReleaseLocator(
            self.client, api_url=s.github_api_url, page_size=s.page_size
        )
        self.catalog = VersionCatalog(
            self.locator,
            s.owner,
            s.repo,
            minimum_version=SemanticVersion.parse(s.minimum_version),
            tag_prefix=s.tag_prefix,
        )
        self.verifier = verifier or SignatureVerifier(gpg_binary=s.gpg_binary)
        self.assembler = assembler or MetadataAssembler(
            s, self.client, self.locator, self.verifier
        )
        self._tag_mapper = tag_mapper or (lambda v: tag_for_version(v, s.tag_prefix))

    # ------------------------------------------------------------------
    # Version discovery
    # ------------------------------------------------------------------

    def get_all_versions(self) -> list[SemanticVersion]:
        """Every eligible upstream version, ascending."""
        return self.catalog.list_eligible_versions()

    def new_versions(self, known: Iterable[str]) -> list[SemanticVersion]:
        """Eligible versions whose string form is not in *known*."""
        known_set = set(known)
        return [v for v in self.get_all_versions() if str(v) not in known_set]

    # ------------------------------------------------------------------
    # Metadata generation
    # ------------------------------------------------------------------

    def generate_metadata(self, version: SemanticVersion | str) -> DependencyMetadata:
        """Resolve *version* to its release and assemble the verified record.

        Raises ``VersionNotFound`` when no eligible release is tagged for the
        version; any other ``RetrievalError`` from the assembly stages
        propagates with a note naming the version.
        """
        requested = str(version).strip()

        try:
            if isinstance(version, str):
                try:
                    version = SemanticVersion.parse(version)
                except ParseError as exc:
                    exc.stage = "resolve"
                    raise
                requested = str(version)

            if not self.catalog.is_eligible(version):
                raise VersionNotFound(
                    requested,
                    reason=f"not an eligible release (minimum {self.catalog.minimum_version}, "
                    "prereleases excluded)",
                    stage="resolve",
                )

            try:
                releases = self.locator.list_releases(self.settings.owner, self.settings.repo)
            except (NetworkError, ParseError) as exc:
                exc.stage = "list-releases"
                raise
            tag = self._tag_mapper(version)
            for release in releases:
                if release.tag_name == tag:
                    logger.info("resolved %s to release %s", requested, tag)
                    return self.assembler.create_dependency_version(requested, release)

            raise VersionNotFound(requested, reason=f"no release tagged {tag}", stage="resolve")
        except RetrievalError as exc:
            exc.add_note(
                f"while generating {self.settings.dependency_id} {requested}"
                + (f" (stage: {exc.stage})" if exc.stage else "")
            )
            raise

    def retrieve(self, versions: Iterable[SemanticVersion | str]) -> RetrievalReport:
        """Generate metadata for each version in turn.

        Releases without a source archive are recorded as skipped; any
        other failure aborts the batch.
        """
        dependencies: list[DependencyMetadata] = []
        skipped: list[str] = []
        for version in versions:
            try:
                dependencies.append(self.generate_metadata(version))
            except NoSourceCodeError as exc:
                logger.warning("skipping %s: %s", exc.version, exc)
                skipped.append(exc.version)
        return RetrievalReport(dependencies=dependencies, skipped=skipped)
