from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.errors import RemoteFailure

logger = logging.getLogger("app.voting")


class VotingAdapter:
    """HTTP adapter for the external voting system.

    Every remote invocation is a function call envelope posted to:
      - POST /call -> {"receiver_id", "method_name", "args",
                       "predecessor_id", "attached_deposit", "prepaid_gas"}

    Any non-2xx status, timeout, transport error or non-JSON body is
    reported as RemoteFailure.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        contract_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.voting_base_url).rstrip("/")
        self.contract_id = contract_id or settings.voting_contract_id
        self._headers: Dict[str, str] = {}
        if settings.voting_token:
            self._headers["X-Voting-Token"] = settings.voting_token
        # Single shared client; the per-call timeout comes from the gas budget
        self._client = httpx.AsyncClient(headers=self._headers, transport=transport)

    async def function_call(
        self,
        method_name: str,
        args: Dict[str, Any],
        *,
        predecessor_id: str,
        deposit: int,
        gas: int,
        timeout_s: float,
    ) -> Any:
        envelope = {
            "receiver_id": self.contract_id,
            "method_name": method_name,
            "args": args,
            "predecessor_id": predecessor_id,
            # yocto amounts exceed JSON-safe integers, so they travel as strings
            "attached_deposit": str(deposit),
            "prepaid_gas": gas,
        }
        try:
            r = await self._client.post(f"{self.base_url}/call", json=envelope, timeout=timeout_s)
        except httpx.TimeoutException as e:
            raise RemoteFailure(f"{method_name} exceeded its gas budget ({timeout_s:.1f}s): {e!r}") from e
        except httpx.HTTPError as e:
            raise RemoteFailure(f"{method_name} transport error: {e!r}") from e

        if r.status_code >= 400:
            try:
                body: Any = r.json()
            except ValueError:
                body = r.text
            raise RemoteFailure(
                f"{method_name} rejected with status {r.status_code}", status=r.status_code, body=body
            )
        try:
            return r.json()
        except ValueError as e:
            raise RemoteFailure(f"{method_name} returned a non-JSON body", status=r.status_code, body=r.text) from e

    async def approve_proposal(
        self,
        proposal_id: int,
        voting_start_time_sec: Optional[int],
        *,
        predecessor_id: str,
        deposit: int,
        gas: int,
        timeout_s: float,
    ) -> Any:
        """Returns the voting system's proposal_info."""
        return await self.function_call(
            "approve_proposal",
            {"proposal_id": proposal_id, "voting_start_time_sec": voting_start_time_sec},
            predecessor_id=predecessor_id,
            deposit=deposit,
            gas=gas,
            timeout_s=timeout_s,
        )

    async def close(self) -> None:
        await self._client.aclose()
