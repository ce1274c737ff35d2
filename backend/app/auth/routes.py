from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.auth.jwt import create_access_token
from app.config import settings

router = APIRouter()


class DevTokenRequest(BaseModel):
    account_id: str = Field(..., min_length=1)


@router.post("/auth/dev-token")
def dev_token(payload: DevTokenRequest):
    """Dev helper endpoint: returns a token for any account.

    Disabled in production, where callers bring tokens from the real issuer.
    """
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not Found")
    return {"access_token": create_access_token(payload.account_id), "token_type": "bearer"}
