from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.jwt import get_caller
from app.deps import get_contract, get_db
from app.schemas.agent import RegisterAgentRequest, Worker
from app.services.contract import ContractRoot

router = APIRouter()


@router.post("/agents/register", response_model=bool)
def register_agent(
    payload: RegisterAgentRequest,
    db: Session = Depends(get_db),
    caller: str = Depends(get_caller),
    contract: ContractRoot = Depends(get_contract),
):
    """Bind the calling account to a codehash, replacing any earlier record.

    Whether the claim is checked depends on the configured attestation
    verifier; the dev verifier accepts everything.
    """
    return contract.register_agent(db, caller, payload.codehash, payload.attestation)


@router.get("/agents/{account_id}", response_model=Worker)
def get_agent(
    account_id: str,
    db: Session = Depends(get_db),
    contract: ContractRoot = Depends(get_contract),
):
    return contract.get_agent(db, account_id)
