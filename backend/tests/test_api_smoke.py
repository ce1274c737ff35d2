"""API smoke tests using FastAPI TestClient."""

import time

from fastapi.testclient import TestClient

from app.config import settings

OWNER = "owner.testnet"
PROXY = settings.proxy_account_id
WORKER = "worker.testnet"


def _init(client: TestClient, auth):
    r = client.post("/init", json={"owner_id": OWNER}, headers=auth(PROXY))
    assert r.status_code == 200
    return r.json()


def _poll_call(client: TestClient, call_id: str) -> dict:
    data = {}
    for _ in range(100):
        r = client.get(f"/governance/calls/{call_id}")
        assert r.status_code == 200
        data = r.json()
        if data["state"] in ("acknowledged", "failed"):
            break
        time.sleep(0.02)
    return data


def test_root(client: TestClient):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["initialized"] is False
    assert data["attestation_mode"] == "dev"


def test_dev_token(client: TestClient):
    r = client.post("/auth/dev-token", json={"account_id": WORKER})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"


def test_identity_bound_routes_require_token(client: TestClient):
    r = client.post("/agents/register", json={"codehash": "abc123"})
    assert r.status_code == 401

    r = client.post("/agents/register", json={"codehash": "abc123"},
                    headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_requests_before_init_are_rejected(client: TestClient, auth):
    r = client.get(f"/agents/{WORKER}")
    assert r.status_code == 409
    r = client.post("/agents/register", json={"codehash": "abc123"}, headers=auth(WORKER))
    assert r.status_code == 409


def test_init_is_private_and_runs_once(client: TestClient, auth):
    r = client.post("/init", json={"owner_id": OWNER}, headers=auth(OWNER))
    assert r.status_code == 403

    info = _init(client, auth)
    assert info["initialized"] is True
    assert info["owner_id"] == OWNER

    r = client.post("/init", json={"owner_id": WORKER}, headers=auth(PROXY))
    assert r.status_code == 409
    assert client.get("/contract").json()["owner_id"] == OWNER


def test_codehash_approval_is_owner_only(client: TestClient, auth):
    _init(client, auth)

    r = client.post("/codehashes", json={"codehash": "abc123"}, headers=auth(WORKER))
    assert r.status_code == 403
    assert client.get("/codehashes/abc123").json()["approved"] is False

    for _ in range(2):
        r = client.post("/codehashes", json={"codehash": "abc123"}, headers=auth(OWNER))
        assert r.status_code == 200
    assert client.get("/codehashes").json() == ["abc123"]

    r = client.delete("/codehashes/abc123", headers=auth(OWNER))
    assert r.status_code == 200
    assert client.get("/codehashes/abc123").json()["approved"] is False


def test_empty_codehash_is_invalid(client: TestClient, auth):
    _init(client, auth)
    r = client.post("/codehashes", json={"codehash": ""}, headers=auth(OWNER))
    assert r.status_code == 422


def test_register_and_get_agent(client: TestClient, auth):
    _init(client, auth)

    r = client.get(f"/agents/{WORKER}")
    assert r.status_code == 404

    r = client.post("/agents/register", json={"codehash": "abc123"}, headers=auth(WORKER))
    assert r.status_code == 200
    assert r.json() is True
    assert client.get(f"/agents/{WORKER}").json() == {"codehash": "abc123"}

    client.post("/agents/register", json={"codehash": "def456"}, headers=auth(WORKER))
    assert client.get(f"/agents/{WORKER}").json() == {"codehash": "def456"}


def test_governance_flow(client: TestClient, auth, voting):
    _init(client, auth)
    client.post("/codehashes", json={"codehash": "abc123"}, headers=auth(OWNER))
    client.post("/agents/register", json={"codehash": "abc123"}, headers=auth(WORKER))

    r = client.post("/governance/approve_proposal", json={"proposal_id": 42}, headers=auth(WORKER))
    assert r.status_code == 202
    handle = r.json()
    assert handle["proposal_id"] == 42
    assert handle["voting_start_time_sec"] is None
    assert handle["callback_gas"] == 30 * 10**12
    assert handle["state"] in ("requested", "acknowledged")

    data = _poll_call(client, handle["call_id"])
    assert data["state"] == "acknowledged"
    assert data["proposal_info"]["id"] == 42
    assert voting.requests[0]["args"] == {"proposal_id": 42, "voting_start_time_sec": None}


def test_governance_remote_failure(client: TestClient, auth, voting):
    _init(client, auth)
    client.post("/codehashes", json={"codehash": "abc123"}, headers=auth(OWNER))
    client.post("/agents/register", json={"codehash": "abc123"}, headers=auth(WORKER))
    voting.fail_with = 409

    r = client.post("/governance/approve_proposal", json={"proposal_id": 42}, headers=auth(WORKER))
    assert r.status_code == 202

    data = _poll_call(client, r.json()["call_id"])
    assert data["state"] == "failed"
    assert data["failure"]["status"] == 409
    assert client.get(f"/agents/{WORKER}").json() == {"codehash": "abc123"}


def test_governance_untrusted_codehash(client: TestClient, auth, voting):
    _init(client, auth)
    client.post("/agents/register", json={"codehash": "zzz999"}, headers=auth(WORKER))

    r = client.post("/governance/approve_proposal", json={"proposal_id": 42}, headers=auth(WORKER))
    assert r.status_code == 403
    assert voting.requests == []


def test_governance_unregistered_caller(client: TestClient, auth):
    _init(client, auth)
    r = client.post("/governance/approve_proposal", json={"proposal_id": 42}, headers=auth(WORKER))
    assert r.status_code == 404


def test_governance_validates_ids(client: TestClient, auth):
    _init(client, auth)
    r = client.post("/governance/approve_proposal", json={"proposal_id": -1}, headers=auth(WORKER))
    assert r.status_code == 422
    r = client.post("/governance/approve_proposal",
                    json={"proposal_id": 1, "voting_start_time_sec": 2**32}, headers=auth(WORKER))
    assert r.status_code == 422


def test_unknown_call_handle(client: TestClient):
    r = client.get("/governance/calls/gov_missing")
    assert r.status_code == 404


def test_codehash_containing_slash(client: TestClient, auth):
    _init(client, auth)
    r = client.post("/codehashes", json={"codehash": "ab/cd"}, headers=auth(OWNER))
    assert r.status_code == 200

    r = client.get("/codehashes/ab/cd")
    assert r.status_code == 200
    assert r.json() == {"codehash": "ab/cd", "approved": True}

    r = client.delete("/codehashes/ab/cd", headers=auth(OWNER))
    assert r.status_code == 200
    assert client.get("/codehashes").json() == []
    assert client.get("/codehashes/ab/cd").json()["approved"] is False


def test_shutdown_waits_for_pending_calls(overrides, contract, voting, auth):
    voting.delay_s = 0.2
    with TestClient(overrides) as c:
        _init(c, auth)
        c.post("/codehashes", json={"codehash": "abc123"}, headers=auth(OWNER))
        c.post("/agents/register", json={"codehash": "abc123"}, headers=auth(WORKER))

        r = c.post("/governance/approve_proposal", json={"proposal_id": 42}, headers=auth(WORKER))
        assert r.status_code == 202
        handle = r.json()
        assert handle["state"] == "requested"

    # Leaving the client ran the shutdown hook on the contract that served the call
    assert contract.get_call(handle["call_id"]).state == "acknowledged"
    assert contract.governance.pending_count == 0
