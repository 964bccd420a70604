"""License lookup over a verified source tarball.

License files near the top of the archive are read in place (nothing is
extracted to disk) and matched against distinguishing phrases of common
licenses.  Text that matches no known license contributes no identifier.
"""

from __future__ import annotations

import logging
import re
import tarfile
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

_LICENSE_FILE_RE = re.compile(r"^(licen[cs]e|copying|unlicense)([.-].*)?$", re.IGNORECASE)

# license files deeper than <top-level dir>/<file> are vendored dependencies
MAX_DEPTH = 2
MAX_LICENSE_BYTES = 256 * 1024


def _norm(text: str) -> str:
    return re.sub(r"\s+", " ", text).lower()


def _bsd_variant(text: str) -> str | None:
    if "redistribution and use in source and binary forms" not in text:
        return None
    if "neither the name" in text or "the names of its contributors may not" in text:
        return "BSD-3-Clause"
    return "BSD-2-Clause"


def identify_license(text: str) -> str | None:
    """Return the SPDX identifier for license *text*, or ``None``."""
    t = _norm(text)
    # copyleft texts name each other in their bodies; match on the title only
    head = t[:400]

    if "apache license" in head and "version 2.0" in head:
        return "Apache-2.0"
    if "mozilla public license" in head and "2.0" in head:
        return "MPL-2.0"
    if "gnu lesser general public license" in head:
        return "LGPL-3.0" if "version 3" in head else "LGPL-2.1"
    if "gnu general public license" in head:
        if "version 3" in head:
            return "GPL-3.0"
        if "version 2" in head:
            return "GPL-2.0"
    bsd = _bsd_variant(t)
    if bsd:
        return bsd
    if "permission is hereby granted, free of charge" in t:
        return "MIT"
    if "permission to use, copy, modify, and/or distribute this software" in t or (
        "permission to use, copy, modify, and distribute this software" in t
        and "isc" in t
    ):
        return "ISC"
    if "this is free and unencumbered software released into the public domain" in t:
        return "Unlicense"
    return None


def _is_license_member(member: tarfile.TarInfo) -> bool:
    if not member.isfile():
        return False
    path = PurePosixPath(member.name)
    parts = [p for p in path.parts if p not in ("", ".")]
    return len(parts) <= MAX_DEPTH and bool(_LICENSE_FILE_RE.match(path.name))


def lookup_licenses(tarball_path: Path | str) -> list[str]:
    """Return the sorted SPDX identifiers of licenses found in the tarball.

    Raises ``tarfile.TarError`` or ``OSError`` if the archive is unreadable.
    """
    found: set[str] = set()
    with tarfile.open(tarball_path, mode="r:*") as archive:
        for member in archive:
            if not _is_license_member(member):
                continue
            fh = archive.extractfile(member)
            if fh is None:
                continue
            with fh:
                text = fh.read(MAX_LICENSE_BYTES).decode("utf-8", errors="replace")
            spdx = identify_license(text)
            logger.debug("license file %s -> %s", member.name, spdx)
            if spdx:
                found.add(spdx)
    return sorted(found)
