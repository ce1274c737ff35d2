from __future__ import annotations

from pydantic import BaseModel, Field


class ApproveCodehashRequest(BaseModel):
    codehash: str = Field(..., min_length=1)


class CodehashStatus(BaseModel):
    codehash: str
    approved: bool
