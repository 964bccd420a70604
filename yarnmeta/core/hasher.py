"""SHA-256 helpers for artifact checksums.

Checksums in dependency records use the ``sha256:<hex>`` form, the same
prefix convention used for content addresses elsewhere in the toolchain.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

CHUNK_SIZE = 64 * 1024


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def file_sha256(path: Path | str, *, chunk_size: int = CHUNK_SIZE) -> str:
    """Stream *path* through SHA-256 and return the hex digest.

    The file is read in ``chunk_size`` blocks so arbitrarily large archives
    never have to fit in memory.  ``OSError`` propagates unchanged.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def algorithm_prefixed(hex_digest: str, algorithm: str = "sha256") -> str:
    """Return ``"<algorithm>:<hex>"``."""
    return f"{algorithm}:{hex_digest}"
