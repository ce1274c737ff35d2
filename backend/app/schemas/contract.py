from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional


class InitRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)


class ContractInfo(BaseModel):
    initialized: bool
    owner_id: Optional[str] = None
    proxy_account_id: str
    voting_contract_id: str
