from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.auth.jwt import get_caller
from app.deps import get_contract, get_db
from app.schemas.codehash import ApproveCodehashRequest, CodehashStatus
from app.services.contract import ContractRoot

router = APIRouter()


@router.post("/codehashes", response_model=CodehashStatus)
def approve_codehash(
    payload: ApproveCodehashRequest,
    db: Session = Depends(get_db),
    caller: str = Depends(get_caller),
    contract: ContractRoot = Depends(get_contract),
):
    contract.approve_codehash(db, caller, payload.codehash)
    return CodehashStatus(codehash=payload.codehash, approved=True)


@router.delete("/codehashes/{codehash:path}", response_model=CodehashStatus)
def revoke_codehash(
    codehash: str,
    db: Session = Depends(get_db),
    caller: str = Depends(get_caller),
    contract: ContractRoot = Depends(get_contract),
):
    contract.revoke_codehash(db, caller, codehash)
    return CodehashStatus(codehash=codehash, approved=False)


@router.get("/codehashes", response_model=List[str])
def list_codehashes(
    db: Session = Depends(get_db),
    contract: ContractRoot = Depends(get_contract),
):
    return contract.list_codehashes(db)


@router.get("/codehashes/{codehash:path}", response_model=CodehashStatus)
def codehash_status(
    codehash: str,
    db: Session = Depends(get_db),
    contract: ContractRoot = Depends(get_contract),
):
    return CodehashStatus(codehash=codehash, approved=contract.is_codehash_approved(db, codehash))
