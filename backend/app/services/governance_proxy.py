from __future__ import annotations

import asyncio
import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.errors import NotFound, RemoteFailure, Unauthorized
from app.schemas.governance import CallState, PendingHandle
from app.services.voting_adapter import VotingAdapter
from app.utils.ids import new_id

logger = logging.getLogger("app.governance")


@dataclass
class CallbackResult:
    """Outcome of the remote call as seen by the callback: a payload or a failure."""

    proposal_info: Any = None
    error: Optional[RemoteFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GovernanceCall:
    """One approve_proposal invocation.

    callback_gas is the budget reserved for the acknowledgment step. It is
    recorded and reported on the handle; the in-process callback only logs
    and updates this record, so nothing meters it.
    """

    call_id: str
    proposal_id: int
    voting_start_time_sec: Optional[int]
    caller: str
    callback_gas: int
    state: CallState = CallState.IDLE
    proposal_info: Any = None
    failure: Optional[Dict[str, Any]] = None
    _token: str = field(default_factory=lambda: secrets.token_hex(16), repr=False)
    _done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def to_handle(self) -> PendingHandle:
        return PendingHandle(
            call_id=self.call_id,
            proposal_id=self.proposal_id,
            voting_start_time_sec=self.voting_start_time_sec,
            state=self.state,
            callback_gas=self.callback_gas,
            proposal_info=self.proposal_info,
            failure=self.failure,
        )


class GovernanceProxy:
    """Relays approve_proposal to the voting system and acknowledges the result.

    Each call is its own state machine:

        IDLE -> REQUESTED -> ACKNOWLEDGED | FAILED

    issue() runs the synchronous part and returns at once; the remote call
    and its callback run later in a background task. The callback is guarded
    by a per-call token only that task holds, and fires exactly once.

    Outcomes are kept in memory for handle lookups only. Nothing is
    deduplicated: approving the same proposal twice issues two remote calls.
    """

    def __init__(
        self,
        voting: VotingAdapter,
        *,
        predecessor_id: str,
        deposit: int,
        gas: int,
        callback_gas: int,
        timeout_s: float,
        max_retained_calls: int = 1000,
    ):
        self.voting = voting
        self.predecessor_id = predecessor_id
        self.deposit = deposit
        self.gas = gas
        self.callback_gas = callback_gas
        self.timeout_s = timeout_s
        self.max_retained_calls = max_retained_calls

        self._calls: "OrderedDict[str, GovernanceCall]" = OrderedDict()
        self._tasks: Dict[str, asyncio.Task] = {}

    # ── request ──────────────────────────────────────────────

    def issue(self, caller: str, proposal_id: int, voting_start_time_sec: Optional[int]) -> GovernanceCall:
        """IDLE -> REQUESTED. Must be called from a running event loop.

        Raises RuntimeError without recording anything if no loop is running.
        """
        asyncio.get_running_loop()
        call = GovernanceCall(
            call_id=new_id("gov"),
            proposal_id=proposal_id,
            voting_start_time_sec=voting_start_time_sec,
            caller=caller,
            callback_gas=self.callback_gas,
        )
        logger.info("PROXY: Agent approving proposal %s (caller=%s call=%s)", proposal_id, caller, call.call_id)

        # The task cannot start before we return, so registering it first is safe
        self._tasks[call.call_id] = asyncio.create_task(self._dispatch(call, call._token))
        call.state = CallState.REQUESTED
        self._calls[call.call_id] = call
        self._evict()
        return call

    async def _dispatch(self, call: GovernanceCall, token: str) -> None:
        try:
            info = await self.voting.approve_proposal(
                call.proposal_id,
                call.voting_start_time_sec,
                predecessor_id=self.predecessor_id,
                deposit=self.deposit,
                gas=self.gas,
                timeout_s=self.timeout_s,
            )
            result = CallbackResult(proposal_info=info)
        except RemoteFailure as e:
            result = CallbackResult(error=e)
        except Exception as e:
            logger.exception("Voting call crashed for proposal %s", call.proposal_id)
            result = CallbackResult(error=RemoteFailure(f"approve_proposal crashed: {e!r}"))
        try:
            self.governance_callback(call.call_id, token, result)
        finally:
            self._tasks.pop(call.call_id, None)

    # ── acknowledgment ───────────────────────────────────────

    def governance_callback(self, call_id: str, token: str, result: CallbackResult) -> GovernanceCall:
        """REQUESTED -> ACKNOWLEDGED | FAILED. Private to the scheduled continuation."""
        call = self._calls.get(call_id)
        if call is None or not secrets.compare_digest(token, call._token):
            raise Unauthorized("governance_callback is private")
        if call.state.is_terminal:
            raise Unauthorized(f"call {call_id} was already acknowledged")

        if result.ok:
            call.state = CallState.ACKNOWLEDGED
            call.proposal_info = result.proposal_info
            logger.info("PROXY: Successfully approved proposal %s", call.proposal_id)
        else:
            call.state = CallState.FAILED
            call.failure = result.error.to_dict()
            logger.error("PROXY: Failed to approve proposal %s: %s", call.proposal_id, result.error.detail)
        call._done.set()
        return call

    # ── handles ──────────────────────────────────────────────

    def get(self, call_id: str) -> GovernanceCall:
        call = self._calls.get(call_id)
        if call is None:
            raise NotFound(f"no governance call {call_id}")
        return call

    async def wait(self, call_id: str, timeout: Optional[float] = None) -> GovernanceCall:
        call = self.get(call_id)
        await asyncio.wait_for(call._done.wait(), timeout=timeout)
        return call

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding remote call to reach a terminal state."""
        tasks = list(self._tasks.values())
        if tasks:
            logger.info("Waiting for %d pending governance call(s)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    def _evict(self) -> None:
        # Drop the oldest finished calls once over the retention limit
        if len(self._calls) <= self.max_retained_calls:
            return
        for call_id in list(self._calls.keys()):
            if len(self._calls) <= self.max_retained_calls:
                break
            if self._calls[call_id].state.is_terminal:
                self._calls.pop(call_id)
