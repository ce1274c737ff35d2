from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.deps import get_contract, get_db
from app.services.contract import ContractRoot

router = APIRouter()


@router.get("/health")
def health(
    db: Session = Depends(get_db),
    contract: ContractRoot = Depends(get_contract),
):
    """Health check endpoint with system status."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "initialized": contract.is_initialized(db),
        "attestation_mode": settings.attestation_mode,
        "pending_governance_calls": contract.governance.pending_count,
        "version": "0.1.0",
    }
