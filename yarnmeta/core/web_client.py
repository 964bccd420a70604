"""HTTP access for every upstream call the pipeline makes.

All requests are single-attempt GETs with a bounded timeout.  An optional
``Deadline`` caps the total time a run may spend on the network: each
request's timeout is shortened to whatever budget remains, and once the
budget is gone the next call fails with ``NetworkError`` without touching
the network.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import requests

from yarnmeta.core.errors import NetworkError, ParseError

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class Deadline:
    """A wall-clock budget shared by every request in one run."""

    def __init__(self, seconds: float, *, clock=time.monotonic) -> None:
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0


class WebClient:
    """Small ``requests`` wrapper that turns transport failures into ``NetworkError``.

    Parameters
    ----------
    session:
        Session to issue requests through.  A fresh ``requests.Session``
        is created when omitted.
    timeout:
        Per-request timeout in seconds.
    deadline:
        Optional overall budget; see module docstring.
    headers:
        Headers sent with every request (merged under per-call headers).
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = 30.0,
        deadline: Deadline | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._deadline = deadline
        self._headers = dict(headers or {})

    def _effective_timeout(self, url: str) -> float:
        if self._deadline is None:
            return self._timeout
        remaining = self._deadline.remaining()
        if remaining <= 0.0:
            raise NetworkError(f"deadline exceeded before GET {url}", url=url)
        return min(self._timeout, remaining)

    def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        """Issue a GET and return the response, raising on any non-2xx status."""
        merged = {**self._headers, **(headers or {})}
        timeout = self._effective_timeout(url)
        logger.debug("GET %s params=%s", url, params)
        try:
            response = self._session.get(
                url, params=params, headers=merged, timeout=timeout, stream=stream
            )
        except requests.RequestException as exc:
            raise NetworkError(f"GET {url} failed: {exc}", url=url) from exc

        if not response.ok:
            status = response.status_code
            response.close()
            raise NetworkError(
                f"GET {url} returned HTTP {status}", url=url, status_code=status
            )
        return response

    def get_bytes(self, url: str, *, headers: dict[str, str] | None = None) -> bytes:
        return self.get(url, headers=headers).content

    def get_text(self, url: str, *, headers: dict[str, str] | None = None) -> str:
        return self.get(url, headers=headers).text

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self.get(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"GET {url} did not return valid JSON") from exc

    def download(
        self,
        url: str,
        destination: Path,
        *,
        headers: dict[str, str] | None = None,
    ) -> int:
        """Stream the body of *url* into *destination*; return bytes written."""
        written = 0
        with self.get(url, headers=headers, stream=True) as response:
            try:
                with open(destination, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        written += len(chunk)
                        # the per-request timeout bounds each read, not the whole body
                        if self._deadline is not None and self._deadline.expired:
                            raise NetworkError(
                                f"deadline exceeded during download of {url}", url=url
                            )
            except requests.RequestException as exc:
                raise NetworkError(f"download of {url} interrupted: {exc}", url=url) from exc
        logger.debug("downloaded %d bytes from %s to %s", written, url, destination)
        return written
