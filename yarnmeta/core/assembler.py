"""Builds the verified dependency record for one resolved release.

Steps, each independently failable, in order:

1. fetch the trusted publisher keys;
2. download the source tarball into a private temporary directory;
3. resolve the asset's JSON sidecar to find its public download URL;
4. fetch the detached ``.asc`` signature;
5. verify the signature (no record is ever built for an unverified file);
6. checksum the download;
7. look up licenses and assemble the record.

The temporary directory is removed on every exit path.
"""

from __future__ import annotations

import logging
import tarfile
import tempfile
from pathlib import Path

from packageurl import PackageURL

from yarnmeta.config import RetrievalSettings
from yarnmeta.core.errors import (
    ArtifactIOError,
    AssetNotFound,
    NetworkError,
    NoSourceCodeError,
    ParseError,
    VerificationError,
)
from yarnmeta.core.hasher import algorithm_prefixed, file_sha256
from yarnmeta.core.license_scanner import lookup_licenses
from yarnmeta.core.release_locator import GITHUB_JSON, ReleaseLocator
from yarnmeta.core.signature_verifier import SignatureVerifier
from yarnmeta.core.web_client import WebClient
from yarnmeta.models.dependency import DependencyMetadata, build_cpe
from yarnmeta.models.releases import Release, parse_asset_sidecar

logger = logging.getLogger(__name__)


def generate_purl(name: str, version: str, sha256: str, source_url: str) -> str:
    """Package URL for a generic upstream tarball."""
    return PackageURL(
        type="generic",
        name=name,
        version=version,
        qualifiers={"checksum": sha256, "download_url": source_url},
    ).to_string()


class MetadataAssembler:
    """Turns a resolved release into a ``DependencyMetadata`` record.

    Parameters
    ----------
    settings:
        Upstream coordinates, dependency identity and trust configuration.
    client:
        ``WebClient`` for key and sidecar fetches.
    locator:
        ``ReleaseLocator`` for asset lookup and download.
    verifier:
        Signature verifier; anything with a compatible ``verify`` method.
    """

    def __init__(
        self,
        settings: RetrievalSettings,
        client: WebClient,
        locator: ReleaseLocator,
        verifier: SignatureVerifier,
    ) -> None:
        self._settings = settings
        self._client = client
        self._locator = locator
        self._verifier = verifier

    def _fetch_trusted_keys(self) -> list[str]:
        keys: list[str] = []
        for url in self._settings.public_key_urls:
            try:
                keys.append(self._client.get_text(url))
            except NetworkError as exc:
                exc.stage = "fetch-keys"
                raise
        return keys

    def source_asset_name(self, tag: str) -> str:
        return f"{self._settings.dependency_id}-{tag}.tar.gz"

    def create_dependency_version(self, version: str, release: Release) -> DependencyMetadata:
        """Download, verify and describe the source archive of *release*."""
        s = self._settings
        tag = release.tag_name
        asset_name = self.source_asset_name(tag)

        trusted_keys = self._fetch_trusted_keys()

        work_dir = str(s.work_dir) if s.work_dir else None
        try:
            tmp = tempfile.TemporaryDirectory(prefix=s.dependency_id, dir=work_dir)
        except OSError as exc:
            raise ArtifactIOError(
                f"failed to create temp directory: {exc}", stage="download"
            ) from exc

        with tmp as tmp_dir:
            asset_path = Path(tmp_dir) / asset_name

            try:
                asset_api_url = self._locator.download_asset(
                    s.owner, s.repo, tag, asset_name, asset_path
                )
            except AssetNotFound as exc:
                raise NoSourceCodeError(version) from exc
            except NetworkError as exc:
                exc.stage = "download"
                raise

            try:
                sidecar = parse_asset_sidecar(
                    self._client.get_json(asset_api_url, headers={"Accept": GITHUB_JSON})
                )
            except (NetworkError, ParseError) as exc:
                exc.stage = "resolve-source"
                raise
            source_url = sidecar.browser_download_url

            try:
                signature = self._locator.fetch_asset_bytes(
                    s.owner, s.repo, tag, f"{asset_name}.asc"
                )
            except (AssetNotFound, NetworkError) as exc:
                exc.stage = "fetch-signature"
                raise

            try:
                self._verifier.verify(
                    signature.decode("utf-8", errors="replace"), asset_path, *trusted_keys
                )
            except VerificationError as exc:
                if exc.result is None:
                    raise
                if exc.result.all_keys_malformed:
                    logger.error(
                        "none of the %d configured publisher keys could be read; "
                        "check the trusted key configuration",
                        len(trusted_keys),
                    )
                else:
                    logger.warning("signature on %s was not made by a trusted key", asset_name)
                raise

            try:
                sha256 = file_sha256(asset_path)
                licenses = lookup_licenses(asset_path)
            except (OSError, tarfile.TarError) as exc:
                raise ArtifactIOError(
                    f"could not read downloaded artifact {asset_name}: {exc}",
                    stage="checksum",
                ) from exc

        checksum = algorithm_prefixed(sha256)
        logger.info("assembled %s %s (%s)", s.dependency_id, version, checksum)
        return DependencyMetadata(
            id=s.dependency_id,
            name=s.dependency_name,
            version=version,
            cpe=build_cpe(s.cpe_vendor, s.dependency_id, version),
            checksum=checksum,
            source_checksum=checksum,
            source=source_url,
            uri=source_url,
            purl=generate_purl(s.dependency_id, version, sha256, source_url),
            licenses=licenses,
            stacks=list(s.stacks),
            strip_components=s.strip_components,
            deprecation_date=None,
        )
