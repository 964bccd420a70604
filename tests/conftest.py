"""Shared test fixtures for yarnmeta.

The network is replaced by ``FakeSession``: an in-memory stand-in for
``requests.Session`` that serves real ``requests.Response`` objects from a
route table, so ``WebClient`` and everything above it run unmodified.
"""

from __future__ import annotations

import io
import json
import shutil
import tarfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import requests

from yarnmeta.config import RetrievalSettings
from yarnmeta.core.errors import VerificationError
from yarnmeta.core.orchestrator import Orchestrator
from yarnmeta.core.web_client import WebClient
from yarnmeta.models.verification import KeyAttempt, KeyOutcome, VerificationResult

API = "https://api.github.com"
REPO_API = f"{API}/repos/yarnpkg/yarn"
DOWNLOAD_BASE = "https://github.com/yarnpkg/yarn/releases/download"
KEY_URL = "https://dl.yarnpkg.com/debian/pubkey.gpg"

OCTET = "application/octet-stream"

BSD_2_CLAUSE = """BSD 2-Clause License

Copyright (c) 2016-present, Yarn Contributors. All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice.
2. Redistributions in binary form must reproduce the above copyright notice.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
"""


# ---------------------------------------------------------------------------
# Fake HTTP
# ---------------------------------------------------------------------------


def full_url(url: str, params: dict[str, Any] | None = None) -> str:
    """The URL ``requests`` would actually send for *url* + *params*."""
    return requests.Request("GET", url, params=params).prepare().url


def make_response(
    url: str,
    *,
    status: int = 200,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body
    response._content_consumed = True
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    return response


@dataclass
class _Route:
    status: int
    body: bytes
    headers: dict[str, str]


@dataclass
class RecordedCall:
    url: str
    headers: dict[str, str]
    timeout: float | None
    stream: bool


@dataclass
class FakeSession:
    """Route table keyed by ``(url, accept)``; unknown URLs answer 404."""

    routes: dict[tuple[str, str | None], _Route] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    def add(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        status: int = 200,
        body: bytes | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        accept: str | None = None,
    ) -> None:
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
            headers = {"Content-Type": "application/json", **(headers or {})}
        self.routes[(full_url(url, params), accept)] = _Route(status, body or b"", headers or {})

    def fail(self, url: str, exc: Exception) -> None:
        self.failures[full_url(url)] = exc

    def get(self, url, params=None, headers=None, timeout=None, stream=False):
        target = full_url(url, params)
        headers = dict(headers or {})
        self.calls.append(RecordedCall(target, headers, timeout, stream))
        if target in self.failures:
            raise self.failures[target]
        accept = headers.get("Accept")
        route = self.routes.get((target, accept)) or self.routes.get((target, None))
        if route is None:
            return make_response(target, status=404, body=b'{"message": "Not Found"}')
        return make_response(target, status=route.status, body=route.body, headers=route.headers)

    def requested(self, fragment: str) -> list[RecordedCall]:
        return [c for c in self.calls if fragment in c.url]


# ---------------------------------------------------------------------------
# Upstream builders
# ---------------------------------------------------------------------------


def make_tarball(top: str, files: dict[str, str]) -> bytes:
    """A gzip tarball with every file under the ``top`` directory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, text in files.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(f"{top}/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@dataclass
class Upstream:
    """Builds a fake yarnpkg/yarn GitHub repository on a ``FakeSession``."""

    session: FakeSession
    _next_asset_id: int = 1000

    def asset_payload(self, tag: str, name: str) -> dict[str, Any]:
        self._next_asset_id += 1
        asset_id = self._next_asset_id
        return {
            "id": asset_id,
            "name": name,
            "size": 0,
            "url": f"{REPO_API}/releases/assets/{asset_id}",
            "browser_download_url": f"{DOWNLOAD_BASE}/{tag}/{name}",
        }

    def release_payload(self, tag: str, assets: dict[str, bytes] | None = None) -> dict[str, Any]:
        """Register *tag* with *assets* (name -> bytes) and return its JSON."""
        asset_payloads = []
        for name, data in (assets or {}).items():
            payload = self.asset_payload(tag, name)
            asset_payloads.append(payload)
            self.session.add(payload["url"], body=data, accept=OCTET)
            self.session.add(
                payload["url"],
                json_body={
                    "name": name,
                    "url": payload["url"],
                    "browser_download_url": payload["browser_download_url"],
                },
            )
        release = {"tag_name": tag, "name": tag, "draft": False, "prerelease": False,
                   "assets": asset_payloads}
        self.session.add(f"{REPO_API}/releases/tags/{tag}", json_body=release)
        return release

    def listing(self, releases: list[dict[str, Any]], *, page_size: int = 100) -> None:
        """Serve *releases* as a paged listing linked with ``rel="next"``."""
        pages = [releases[i:i + page_size] for i in range(0, len(releases), page_size)] or [[]]
        first = full_url(f"{REPO_API}/releases", {"per_page": page_size})
        for number, page in enumerate(pages, start=1):
            url = first if number == 1 else full_url(
                f"{REPO_API}/releases", {"per_page": page_size, "page": number}
            )
            headers = {}
            if number < len(pages):
                next_url = full_url(
                    f"{REPO_API}/releases", {"per_page": page_size, "page": number + 1}
                )
                headers["Link"] = f'<{next_url}>; rel="next"'
            self.session.add(url, json_body=page, headers=headers)

    def publish_source(self, version: str, *, tarball: bytes, signature: str = "SIG") -> dict:
        """A release tagged ``v<version>`` with tarball and ``.asc`` assets."""
        tag = f"v{version}"
        name = f"yarn-{tag}.tar.gz"
        return self.release_payload(tag, {name: tarball, f"{name}.asc": signature.encode()})


# ---------------------------------------------------------------------------
# Verifier doubles
# ---------------------------------------------------------------------------


class RecordingVerifier:
    """Accepts every signature; remembers what it was asked to check."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def verify(self, signature_text: str, file_path, *candidate_keys: str) -> VerificationResult:
        path = Path(file_path)
        self.calls.append(
            {
                "signature": signature_text,
                "path": path,
                "data": path.read_bytes(),
                "keys": list(candidate_keys),
            }
        )
        return VerificationResult(
            attempts=[KeyAttempt(index=0, outcome=KeyOutcome.ACCEPTED)],
            signer_fingerprint="FAKE",
        )


class RejectingVerifier(RecordingVerifier):
    """Refuses every signature, optionally as if every key were malformed."""

    def __init__(self, outcome: KeyOutcome = KeyOutcome.REJECTED) -> None:
        super().__init__()
        self.outcome = outcome

    def verify(self, signature_text: str, file_path, *candidate_keys: str) -> VerificationResult:
        super().verify(signature_text, file_path, *candidate_keys)
        attempts = [KeyAttempt(index=i, outcome=self.outcome) for i in range(len(candidate_keys))]
        raise VerificationError(result=VerificationResult(attempts=attempts))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Parent directory for the assembler's temporary downloads."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def settings(work_dir: Path) -> RetrievalSettings:
    """Default settings, isolated from any local .env file."""
    return RetrievalSettings(_env_file=None, work_dir=work_dir)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def upstream(session: FakeSession) -> Upstream:
    """Fake upstream with the publisher key endpoint already served."""
    session.add(KEY_URL, body=b"-----BEGIN PGP PUBLIC KEY BLOCK-----\nfake\n")
    return Upstream(session)


@pytest.fixture
def client(session: FakeSession) -> WebClient:
    return WebClient(session=session, timeout=5.0)


@pytest.fixture
def verifier() -> RecordingVerifier:
    return RecordingVerifier()


@pytest.fixture
def yarn_tarball() -> bytes:
    return make_tarball(
        "yarn-v1.22.19",
        {"LICENSE": BSD_2_CLAUSE, "package.json": '{"name": "yarn", "version": "1.22.19"}'},
    )


@pytest.fixture
def make_orchestrator(
    settings: RetrievalSettings, client: WebClient, verifier: RecordingVerifier
) -> Callable[..., Orchestrator]:
    """Factory fixture: an Orchestrator wired to the fake network."""

    def _factory(**overrides: Any) -> Orchestrator:
        kwargs: dict[str, Any] = {"client": client, "verifier": verifier}
        kwargs.update(overrides)
        return Orchestrator(settings, **kwargs)

    return _factory


# ---------------------------------------------------------------------------
# Real OpenPGP keys (only when gpg is installed)
# ---------------------------------------------------------------------------

requires_gpg = pytest.mark.skipif(
    shutil.which("gpg") is None, reason="gpg executable not installed"
)


@dataclass
class SigningKey:
    """A generated key pair living in a test-only GnuPG home."""

    gpg: Any
    fingerprint: str

    def public_armor(self) -> str:
        return self.gpg.export_keys(self.fingerprint)

    def sign_detached(self, data: bytes) -> str:
        signed = self.gpg.sign(data, keyid=self.fingerprint, detach=True)
        text = str(signed)
        if not text:
            pytest.skip(f"gpg could not sign: {getattr(signed, 'stderr', '')}")
        return text


@pytest.fixture(scope="session")
def gpg_keys(tmp_path_factory: pytest.TempPathFactory) -> dict[str, SigningKey]:
    """Two unprotected RSA keys: ``trusted`` (the publisher) and ``stranger``."""
    if shutil.which("gpg") is None:
        pytest.skip("gpg executable not installed")
    import gnupg

    home = tmp_path_factory.mktemp("gnupg")
    gpg = gnupg.GPG(gnupghome=str(home))
    keys: dict[str, SigningKey] = {}
    for label in ("trusted", "stranger"):
        params = gpg.gen_key_input(
            key_type="RSA",
            key_length=2048,
            name_real=f"yarnmeta {label}",
            name_email=f"{label}@example.invalid",
            no_protection=True,
        )
        generated = gpg.gen_key(params)
        if not generated.fingerprint:
            pytest.skip(f"gpg key generation failed: {generated.stderr}")
        keys[label] = SigningKey(gpg, generated.fingerprint)
    return keys
