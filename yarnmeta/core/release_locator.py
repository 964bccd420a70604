"""GitHub Releases client: listing, asset lookup, and asset download.

The listing is paged by following the ``Link: <...>; rel="next"`` header the
API returns.  Either every page is fetched or the call fails; callers never
see a partial listing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from yarnmeta.core.errors import AssetNotFound, NetworkError, ParseError
from yarnmeta.core.web_client import WebClient
from yarnmeta.models.releases import Asset, Release, parse_release, parse_releases

logger = logging.getLogger(__name__)

GITHUB_JSON = "application/vnd.github+json"
OCTET_STREAM = "application/octet-stream"


class ReleaseLocator:
    """Read-only view of one GitHub instance's release endpoints.

    Parameters
    ----------
    client:
        ``WebClient`` used for every request.
    api_url:
        Base URL of the REST API.
    page_size:
        ``per_page`` for the release listing (GitHub caps it at 100).
    """

    def __init__(
        self,
        client: WebClient,
        *,
        api_url: str = "https://api.github.com",
        page_size: int = 100,
    ) -> None:
        self._client = client
        self._api_url = api_url.rstrip("/")
        self._page_size = page_size

    def _repo_url(self, owner: str, repo: str) -> str:
        return f"{self._api_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    # ------------------------------------------------------------------
    # Releases
    # ------------------------------------------------------------------

    def list_releases(self, owner: str, repo: str) -> list[Release]:
        """Return every release of ``owner/repo`` in API order."""
        releases: list[Release] = []
        url: str | None = f"{self._repo_url(owner, repo)}/releases"
        params: dict | None = {"per_page": self._page_size}
        pages = 0

        while url:
            response = self._client.get(url, params=params, headers={"Accept": GITHUB_JSON})
            try:
                payload = response.json()
            except ValueError as exc:
                raise ParseError(f"release listing page {pages + 1} is not JSON") from exc
            releases.extend(parse_releases(payload))
            pages += 1
            # the next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        logger.info("listed %d releases of %s/%s across %d page(s)", len(releases), owner, repo, pages)
        return releases

    def get_release(self, owner: str, repo: str, tag: str) -> Release:
        """Fetch a single release by tag."""
        url = f"{self._repo_url(owner, repo)}/releases/tags/{quote(tag, safe='')}"
        return parse_release(self._client.get_json(url, headers={"Accept": GITHUB_JSON}))

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def find_asset(self, owner: str, repo: str, tag: str, asset_name: str) -> Asset:
        """Return the asset named *asset_name* in release *tag*.

        Raises ``AssetNotFound`` when the release lacks the asset, or when
        the release itself is gone.
        """
        try:
            release = self.get_release(owner, repo, tag)
        except NetworkError as exc:
            if exc.status_code == 404:
                raise AssetNotFound(asset_name, tag=tag) from exc
            raise

        asset = release.find_asset(asset_name)
        if asset is None:
            raise AssetNotFound(asset_name, tag=tag)
        return asset

    def resolve_asset_download_url(
        self, owner: str, repo: str, tag: str, asset_name: str
    ) -> str:
        """Return the API URL of the asset (serves JSON or the raw bytes)."""
        return self.find_asset(owner, repo, tag, asset_name).url

    def fetch_asset_bytes(self, owner: str, repo: str, tag: str, asset_name: str) -> bytes:
        """Download the asset body into memory.  Meant for small assets."""
        asset = self.find_asset(owner, repo, tag, asset_name)
        return self._client.get_bytes(asset.url, headers={"Accept": OCTET_STREAM})

    def download_asset(
        self,
        owner: str,
        repo: str,
        tag: str,
        asset_name: str,
        destination: Path,
    ) -> str:
        """Stream the asset to *destination* and return its API URL."""
        asset = self.find_asset(owner, repo, tag, asset_name)
        size = self._client.download(
            asset.url, destination, headers={"Accept": OCTET_STREAM}
        )
        logger.info("downloaded %s (%d bytes)", asset_name, size)
        return asset.url
