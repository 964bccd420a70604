"""Eligible-version catalog built from the upstream release listing.

A tag becomes a catalog entry only if, after the tag prefix is stripped, it
parses as a strict semantic version, is at or above the eligibility floor,
and carries no prerelease label.  Tags failing any of these are skipped,
never reported as errors: upstream has historical tags of unrelated form.
"""

from __future__ import annotations

import logging

from yarnmeta.core.errors import NetworkError, ParseError
from yarnmeta.core.release_locator import ReleaseLocator
from yarnmeta.models.versioning import SemanticVersion

logger = logging.getLogger(__name__)

DEFAULT_TAG_PREFIX = "v"
MINIMUM_VERSION = SemanticVersion.parse("0.7.0")


def tag_for_version(version: SemanticVersion | str, prefix: str = DEFAULT_TAG_PREFIX) -> str:
    """Map a version to the release tag upstream publishes it under."""
    return f"{prefix}{version}"


def version_from_tag(tag: str, prefix: str = DEFAULT_TAG_PREFIX) -> SemanticVersion:
    """Inverse of ``tag_for_version``.  Raises ``ParseError``."""
    return SemanticVersion.parse(tag.removeprefix(prefix))


class VersionCatalog:
    """Turns the raw release list into the set of eligible versions.

    Parameters
    ----------
    locator:
        Source of the release listing.
    owner, repo:
        Upstream repository.
    minimum_version:
        Eligibility floor (inclusive).
    tag_prefix:
        Literal prefix stripped from tags before parsing.
    """

    def __init__(
        self,
        locator: ReleaseLocator,
        owner: str,
        repo: str,
        *,
        minimum_version: SemanticVersion = MINIMUM_VERSION,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
    ) -> None:
        self._locator = locator
        self._owner = owner
        self._repo = repo
        self._minimum = minimum_version
        self._tag_prefix = tag_prefix

    @property
    def minimum_version(self) -> SemanticVersion:
        return self._minimum

    def is_eligible(self, version: SemanticVersion) -> bool:
        return not version.is_prerelease and version >= self._minimum

    def list_eligible_versions(self) -> list[SemanticVersion]:
        """Return every eligible version exactly once, ascending."""
        eligible: set[SemanticVersion] = set()
        try:
            releases = self._locator.list_releases(self._owner, self._repo)
        except (NetworkError, ParseError) as exc:
            exc.stage = "list-releases"
            raise

        for release in releases:
            try:
                version = version_from_tag(release.tag_name, self._tag_prefix)
            except ParseError:
                logger.debug("skipping unparseable tag %r", release.tag_name)
                continue
            if not self.is_eligible(version):
                logger.debug("skipping ineligible version %s", version)
                continue
            eligible.add(version)

        versions = sorted(eligible)
        logger.info("%d eligible versions of %s/%s", len(versions), self._owner, self._repo)
        return versions
