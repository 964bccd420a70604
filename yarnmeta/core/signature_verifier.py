"""Detached OpenPGP signature verification with an any-of-N trust policy.

Candidate keys are tried in the order supplied.  Each one is imported into
its own throw-away keyring, so a signature can only be accepted by the key
currently under test:

- a key that cannot be imported is recorded as ``malformed`` and skipped;
- a key that imports but does not validate is recorded as ``rejected``;
- the first key that validates ends the search with success.

If no key validates, ``VerificationError`` is raised.  Its message is the
same whether the keys were malformed or simply did not match; the attached
``VerificationResult`` keeps the per-key detail for operators.

Cryptography is delegated to the ``gpg`` binary through python-gnupg.  The
signed file is handed to gpg by path and never loaded into Python.
"""

from __future__ import annotations

import io
import logging
import tempfile
from pathlib import Path

import gnupg

from yarnmeta.core.errors import VerificationError
from yarnmeta.models.verification import KeyAttempt, KeyOutcome, VerificationResult

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """Verifies detached signatures against candidate public keys.

    Parameters
    ----------
    gpg_binary:
        Name or path of the gpg executable.
    """

    def __init__(self, gpg_binary: str = "gpg") -> None:
        self._gpg_binary = gpg_binary

    def _keyring(self, home: str) -> gnupg.GPG:
        try:
            return gnupg.GPG(gnupghome=home, gpgbinary=self._gpg_binary)
        except (OSError, ValueError) as exc:
            raise VerificationError(
                f"gpg executable {self._gpg_binary!r} is not usable: {exc}"
            ) from exc

    def _try_key(
        self, index: int, key: str, signature_text: str, file_path: Path
    ) -> KeyAttempt:
        with tempfile.TemporaryDirectory(
            prefix="yarnmeta-gnupg-", ignore_cleanup_errors=True
        ) as home:
            gpg = self._keyring(home)
            imported = gpg.import_keys(key)
            if not imported.fingerprints:
                logger.warning("candidate key #%d could not be read as a key ring", index)
                return KeyAttempt(
                    index=index,
                    outcome=KeyOutcome.MALFORMED,
                    detail=(getattr(imported, "stderr", "") or "").strip()[-500:],
                )

            fingerprints = list(imported.fingerprints)
            verified = gpg.verify_file(
                io.BytesIO(signature_text.encode("utf-8")),
                data_filename=str(file_path),
            )
            if verified.valid:
                return KeyAttempt(
                    index=index,
                    outcome=KeyOutcome.ACCEPTED,
                    fingerprints=fingerprints,
                    detail=verified.fingerprint or "",
                )

            logger.debug(
                "candidate key #%d did not validate the signature: %s",
                index,
                verified.status,
            )
            return KeyAttempt(
                index=index,
                outcome=KeyOutcome.REJECTED,
                fingerprints=fingerprints,
                detail=verified.status or "",
            )

    def verify(
        self, signature_text: str, file_path: Path | str, *candidate_keys: str
    ) -> VerificationResult:
        """Check *signature_text* over *file_path* against *candidate_keys*.

        Returns the ``VerificationResult`` on success; raises
        ``VerificationError`` (with the result attached) otherwise.
        """
        if not candidate_keys:
            raise VerificationError(
                "no trusted keys provided", result=VerificationResult()
            )

        path = Path(file_path)
        attempts: list[KeyAttempt] = []
        for index, key in enumerate(candidate_keys):
            attempt = self._try_key(index, key, signature_text, path)
            attempts.append(attempt)
            if attempt.outcome == KeyOutcome.ACCEPTED:
                logger.info("signature on %s validated by key #%d", path.name, index)
                return VerificationResult(
                    attempts=attempts, signer_fingerprint=attempt.detail
                )

        raise VerificationError(result=VerificationResult(attempts=attempts))
