"""Signature verification outcomes.

The verifier reports what it did with each candidate key instead of
printing it, so callers and tests can inspect the outcome directly.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class KeyOutcome(str, Enum):
    """What happened when one candidate key was tried."""

    MALFORMED = "malformed"  # could not be imported as a key ring
    REJECTED = "rejected"  # imported, but did not validate the signature
    ACCEPTED = "accepted"


class KeyAttempt(BaseModel):
    """One candidate key and its outcome."""

    model_config = ConfigDict(frozen=True)

    index: int
    outcome: KeyOutcome
    fingerprints: list[str] = Field(default_factory=list)
    detail: str = ""


class VerificationResult(BaseModel):
    """Ordered record of every key tried during one verification call."""

    model_config = ConfigDict(frozen=True)

    attempts: list[KeyAttempt] = Field(default_factory=list)
    signer_fingerprint: str = ""

    @property
    def verified(self) -> bool:
        return any(a.outcome == KeyOutcome.ACCEPTED for a in self.attempts)

    @property
    def all_keys_malformed(self) -> bool:
        """True when keys were supplied but none of them could be imported.

        That points at broken trust configuration rather than at a bad
        artifact.
        """
        return bool(self.attempts) and all(
            a.outcome == KeyOutcome.MALFORMED for a in self.attempts
        )
