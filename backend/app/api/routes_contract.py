from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.jwt import get_caller
from app.deps import get_contract, get_db
from app.schemas.contract import ContractInfo, InitRequest
from app.services.contract import ContractRoot

router = APIRouter()


@router.post("/init", response_model=ContractInfo)
def initialize(
    payload: InitRequest,
    db: Session = Depends(get_db),
    caller: str = Depends(get_caller),
    contract: ContractRoot = Depends(get_contract),
):
    """One-time setup. Only the proxy's own account may call this."""
    return contract.initialize(db, caller, payload.owner_id)


@router.get("/contract", response_model=ContractInfo)
def contract_info(
    db: Session = Depends(get_db),
    contract: ContractRoot = Depends(get_contract),
):
    return contract.info(db)
