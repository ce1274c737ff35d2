from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.jwt import get_caller
from app.deps import get_contract, get_db
from app.schemas.governance import ApproveProposalRequest, PendingHandle
from app.services.contract import ContractRoot

router = APIRouter()


@router.post("/governance/approve_proposal", response_model=PendingHandle, status_code=202)
async def approve_proposal(
    payload: ApproveProposalRequest,
    db: Session = Depends(get_db),
    caller: str = Depends(get_caller),
    contract: ContractRoot = Depends(get_contract),
):
    """Relay an approval to the voting system.

    Returns as soon as the remote call is scheduled. Poll
    GET /governance/calls/{call_id} for the outcome.
    """
    return contract.approve_proposal(db, caller, payload.proposal_id, payload.voting_start_time_sec)


@router.get("/governance/calls/{call_id}", response_model=PendingHandle)
def get_call(call_id: str, contract: ContractRoot = Depends(get_contract)):
    return contract.get_call(call_id)
