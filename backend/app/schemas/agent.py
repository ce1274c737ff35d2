from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class Worker(BaseModel):
    codehash: str


class RegisterAgentRequest(BaseModel):
    codehash: str = Field(..., min_length=1)
    # Attestation evidence for strict deployments; ignored by the dev verifier
    attestation: Optional[Dict[str, Any]] = None
