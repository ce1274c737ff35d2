from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from app.errors import Unauthorized

logger = logging.getLogger("app.attestation")


class AttestationVerifier(Protocol):
    """Proves that a registering caller actually runs the codehash it claims."""

    def verify(self, account_id: str, codehash: str, attestation: Optional[Dict[str, Any]]) -> None:
        """Raise Unauthorized if the claim cannot be proven."""
        ...


class DevAttestationVerifier:
    """LOCAL DEV ONLY: accepts every registration without checking anything."""

    def verify(self, account_id: str, codehash: str, attestation: Optional[Dict[str, Any]]) -> None:
        logger.warning(
            "Attestation check SKIPPED (dev mode): account=%s codehash=%s", account_id, codehash
        )


class StrictAttestationVerifier:
    """Rejects every registration until a real attestation backend is wired in.

    Deployments that need worker registration supply their own verifier.
    """

    def verify(self, account_id: str, codehash: str, attestation: Optional[Dict[str, Any]]) -> None:
        if not attestation:
            raise Unauthorized("attestation proof required")
        raise Unauthorized("no attestation backend configured")


def build_verifier(mode: str) -> AttestationVerifier:
    mode = (mode or "").lower()
    if mode == "dev":
        return DevAttestationVerifier()
    if mode == "strict":
        return StrictAttestationVerifier()
    raise ValueError(f"unknown attestation mode: {mode}")
