from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.db.models import ContractState
from app.errors import AlreadyInitialized, NotInitialized, Unauthorized
from app.schemas.agent import Worker
from app.schemas.contract import ContractInfo
from app.schemas.governance import PendingHandle
from app.services.access_control import require_owner, require_trusted
from app.services.attestation import AttestationVerifier, build_verifier
from app.services.governance_proxy import GovernanceProxy
from app.services.trust_registry import TrustRegistry
from app.services.worker_directory import WorkerDirectory
from app.services.voting_adapter import VotingAdapter
from app.utils.time import utc_now

logger = logging.getLogger("app.contract")

_STATE_ID = 1


class ContractRoot:
    """The externally callable surface of the proxy.

    Owns the persistent state (owner, trust registry, worker directory) and
    the governance proxy. Every operation takes the session it runs in and
    the calling account. Failures raise before commit, so a rejected call
    leaves no partial state behind.
    """

    def __init__(
        self,
        governance: GovernanceProxy,
        verifier: AttestationVerifier,
        proxy_account_id: str,
    ):
        self.governance = governance
        self.verifier = verifier
        self.proxy_account_id = proxy_account_id

    @classmethod
    def from_settings(cls, voting: Optional[VotingAdapter] = None) -> "ContractRoot":
        voting = voting or VotingAdapter()
        governance = GovernanceProxy(
            voting,
            predecessor_id=settings.proxy_account_id,
            deposit=settings.approval_deposit_yocto,
            gas=settings.governance_gas,
            callback_gas=settings.callback_gas,
            timeout_s=settings.governance_timeout_s,
        )
        return cls(governance, build_verifier(settings.attestation_mode), settings.proxy_account_id)

    # ── initialization ───────────────────────────────────────

    def _state(self, db: Session) -> ContractState:
        state = db.get(ContractState, _STATE_ID)
        if state is None:
            raise NotInitialized()
        return state

    def is_initialized(self, db: Session) -> bool:
        return db.get(ContractState, _STATE_ID) is not None

    def initialize(self, db: Session, caller: str, owner_id: str) -> ContractInfo:
        if caller != self.proxy_account_id:
            raise Unauthorized("initialize may only be called by the proxy account")
        return self._initialize(db, owner_id)

    def _initialize(self, db: Session, owner_id: str) -> ContractInfo:
        if self.is_initialized(db):
            raise AlreadyInitialized()
        db.add(ContractState(id=_STATE_ID, owner_id=owner_id, initialized_at=utc_now()))
        try:
            db.commit()
        except IntegrityError:
            # Another initializer committed between the check and ours
            db.rollback()
            raise AlreadyInitialized()
        logger.info("Contract initialized: owner=%s", owner_id)
        return self.info(db)

    def bootstrap(self, db: Session, owner_id: str) -> bool:
        """Initialize from configuration at startup; no-op if already initialized."""
        if self.is_initialized(db):
            return False
        try:
            self._initialize(db, owner_id)
        except AlreadyInitialized:
            return False
        return True

    def info(self, db: Session) -> ContractInfo:
        state = db.get(ContractState, _STATE_ID)
        return ContractInfo(
            initialized=state is not None,
            owner_id=state.owner_id if state else None,
            proxy_account_id=self.proxy_account_id,
            voting_contract_id=self.governance.voting.contract_id,
        )

    # ── trust registry ───────────────────────────────────────

    def approve_codehash(self, db: Session, caller: str, codehash: str) -> None:
        require_owner(self._state(db).owner_id, caller)
        try:
            TrustRegistry(db).insert(codehash)
            db.commit()
        except IntegrityError:
            # Inserted concurrently; approval is idempotent
            db.rollback()

    def revoke_codehash(self, db: Session, caller: str, codehash: str) -> None:
        require_owner(self._state(db).owner_id, caller)
        TrustRegistry(db).remove(codehash)
        db.commit()

    def is_codehash_approved(self, db: Session, codehash: str) -> bool:
        self._state(db)
        return TrustRegistry(db).contains(codehash)

    def list_codehashes(self, db: Session) -> List[str]:
        self._state(db)
        return TrustRegistry(db).list()

    # ── workers ──────────────────────────────────────────────

    def register_agent(
        self,
        db: Session,
        caller: str,
        codehash: str,
        attestation: Optional[Dict[str, Any]] = None,
    ) -> bool:
        self._state(db)
        self.verifier.verify(caller, codehash, attestation)
        try:
            WorkerDirectory(db).register(caller, codehash)
            db.commit()
        except IntegrityError:
            # A concurrent first registration won the insert; overwrite it
            db.rollback()
            WorkerDirectory(db).register(caller, codehash)
            db.commit()
        return True

    def get_agent(self, db: Session, account_id: str) -> Worker:
        self._state(db)
        return WorkerDirectory(db).lookup(account_id)

    # ── governance ───────────────────────────────────────────

    def approve_proposal(
        self,
        db: Session,
        caller: str,
        proposal_id: int,
        voting_start_time_sec: Optional[int] = None,
    ) -> PendingHandle:
        self._state(db)
        require_trusted(db, caller)
        return self.governance.issue(caller, proposal_id, voting_start_time_sec).to_handle()

    def get_call(self, call_id: str) -> PendingHandle:
        return self.governance.get(call_id).to_handle()

    async def close(self) -> None:
        await self.governance.drain()
        await self.governance.voting.close()
