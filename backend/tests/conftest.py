"""Test fixtures: in-memory SQLite database, a fake voting system and a FastAPI TestClient."""

from __future__ import annotations

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ATTESTATION_MODE"] = "dev"
os.environ.pop("OWNER_ID", None)

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.auth.jwt import create_access_token
from app.config import TGAS, settings
from app.db.session import Base, create_tables, make_engine
from app.deps import get_contract, get_db
from app.main import app
from app.services.attestation import DevAttestationVerifier
from app.services.contract import ContractRoot
from app.services.governance_proxy import GovernanceProxy
from app.services.voting_adapter import VotingAdapter


OWNER = "owner.testnet"
PROXY = settings.proxy_account_id
VOTING_CONTRACT = "shade.ballotbox.testnet"


class FakeVotingSystem:
    """Stands in for the voting system behind an httpx.MockTransport.

    Records every function-call envelope it receives. Set `fail_with` to a
    status code to reject calls, `timeout` to simulate an exhausted gas
    budget, `delay_s` to answer slowly, or `gate` to an asyncio.Event to
    hold responses until it is set.
    """

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.fail_with: Optional[int] = None
        self.timeout = False
        self.gate: Optional[asyncio.Event] = None
        self.delay_s = 0.0
        self.timeouts: List[Dict[str, Any]] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.timeouts.append(request.extensions.get("timeout", {}))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.gate is not None:
            await self.gate.wait()
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"detail": "rejected by voting system"})
        args = body["args"]
        return httpx.Response(
            200,
            json={
                "id": args["proposal_id"],
                "status": "Approved",
                "voting_start_time_sec": args["voting_start_time_sec"],
            },
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_contract(voting: FakeVotingSystem) -> ContractRoot:
    adapter = VotingAdapter(
        base_url="http://voting.test",
        contract_id=VOTING_CONTRACT,
        transport=voting.transport(),
    )
    governance = GovernanceProxy(
        adapter,
        predecessor_id=PROXY,
        deposit=1,
        gas=50 * TGAS,
        callback_gas=30 * TGAS,
        timeout_s=10.0,
    )
    return ContractRoot(governance, DevAttestationVerifier(), PROXY)


@pytest.fixture()
def db_factory():
    engine = make_engine("sqlite://")
    create_tables(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(db_factory):
    session = db_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def voting():
    return FakeVotingSystem()


@pytest.fixture()
def contract(voting):
    return make_contract(voting)


@pytest.fixture()
def initialized(db, contract):
    contract.initialize(db, PROXY, OWNER)
    return contract


@pytest.fixture()
def auth():
    def _headers(account_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(account_id)}"}

    return _headers


@pytest.fixture()
def overrides(db_factory, contract):
    """Route the app's session and contract dependencies to the test fixtures."""

    def _override_get_db():
        session = db_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_contract] = lambda: contract
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(overrides):
    with TestClient(overrides) as c:
        yield c
