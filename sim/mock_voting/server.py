from __future__ import annotations

"""Mock Voting System

- Keeps proposals in memory (ids start at 0).
- Accepts function-call envelopes on POST /call, like the proxy sends them.
- approve_proposal requires exactly 1 yoctoNEAR attached and moves a
  proposal from "InProgress" to "Approved"; voting starts at the given
  time or now.
- Supports scenario injection via POST /scenario to exercise the proxy's
  failure path (slow responses, rejections).

Run with: uvicorn sim.mock_voting.server:app --port 8091
"""

import os
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, HTTPException
from pydantic import BaseModel, Field

app = FastAPI(title="Mock Voting System", version="0.1.0")

VOTING_TOKEN = os.getenv("VOTING_TOKEN", "").strip()
REQUIRED_DEPOSIT = "1"


def _require_voting_token(request: Request) -> None:
    """Require X-Voting-Token header if VOTING_TOKEN is configured."""
    if not VOTING_TOKEN:
        return
    got = (request.headers.get("X-Voting-Token") or "").strip()
    if got != VOTING_TOKEN:
        raise HTTPException(status_code=401, detail="Unauthorized voting call")


class FunctionCall(BaseModel):
    receiver_id: str
    method_name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    predecessor_id: str
    attached_deposit: str = "0"
    prepaid_gas: int = 0


class ProposalCreate(BaseModel):
    description: str = ""


class ScenarioRequest(BaseModel):
    scenario: str = Field(..., description="clear|slow|reject")
    delay_s: float = 0.0


proposals: Dict[int, Dict[str, Any]] = {}
scenario: Dict[str, Any] = {"name": "clear", "delay_s": 0.0}


def _approve_proposal(call: FunctionCall) -> Dict[str, Any]:
    if call.attached_deposit != REQUIRED_DEPOSIT:
        raise HTTPException(status_code=400, detail=f"Requires attached deposit of exactly {REQUIRED_DEPOSIT} yoctoNEAR")

    proposal_id = call.args.get("proposal_id")
    if not isinstance(proposal_id, int):
        raise HTTPException(status_code=400, detail="proposal_id must be an integer")
    proposal = proposals.get(proposal_id)
    if proposal is None:
        raise HTTPException(status_code=404, detail=f"Proposal {proposal_id} not found")
    if proposal["status"] != "InProgress":
        raise HTTPException(status_code=409, detail=f"Proposal {proposal_id} is {proposal['status']}")

    start: Optional[int] = call.args.get("voting_start_time_sec")
    proposal["status"] = "Approved"
    proposal["reviewer_id"] = call.predecessor_id
    proposal["voting_start_time_ns"] = int(start if start is not None else time.time()) * 1_000_000_000
    return proposal


METHODS = {"approve_proposal": _approve_proposal}


@app.post("/proposals")
def create_proposal(request: Request, body: ProposalCreate):
    _require_voting_token(request)
    pid = len(proposals)
    proposals[pid] = {
        "id": pid,
        "description": body.description,
        "status": "InProgress",
        "reviewer_id": None,
        "voting_start_time_ns": None,
    }
    return proposals[pid]


@app.get("/proposals/{proposal_id}")
def get_proposal(request: Request, proposal_id: int):
    _require_voting_token(request)
    if proposal_id not in proposals:
        raise HTTPException(status_code=404, detail=f"Proposal {proposal_id} not found")
    return proposals[proposal_id]


@app.post("/call")
def function_call(request: Request, call: FunctionCall):
    _require_voting_token(request)

    if scenario["delay_s"]:
        time.sleep(scenario["delay_s"])
    if scenario["name"] == "reject":
        raise HTTPException(status_code=503, detail="Voting system rejected the call (scenario)")

    handler = METHODS.get(call.method_name)
    if handler is None:
        raise HTTPException(status_code=400, detail=f"Unknown method {call.method_name}")
    return handler(call)


@app.post("/scenario")
def inject_scenario(request: Request, body: ScenarioRequest):
    _require_voting_token(request)
    if body.scenario not in ("clear", "slow", "reject"):
        raise HTTPException(status_code=400, detail=f"Unknown scenario {body.scenario}")
    scenario["name"] = body.scenario
    scenario["delay_s"] = body.delay_s if body.scenario == "slow" else 0.0
    return {"ok": True, "scenario": dict(scenario)}


@app.get("/health")
def health():
    return {"status": "ok", "proposals": len(proposals), "scenario": scenario["name"]}
