from __future__ import annotations

import enum

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


class CallState(str, enum.Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CallState.ACKNOWLEDGED, CallState.FAILED)


class ApproveProposalRequest(BaseModel):
    proposal_id: int = Field(..., ge=0, le=U64_MAX)
    voting_start_time_sec: Optional[int] = Field(None, ge=0, le=U32_MAX)


class PendingHandle(BaseModel):
    """What the caller of approve_proposal gets back before the remote call resolves."""

    call_id: str
    proposal_id: int
    voting_start_time_sec: Optional[int] = None
    state: CallState
    callback_gas: int
    proposal_info: Optional[Any] = None
    failure: Optional[Dict[str, Any]] = None
