from __future__ import annotations

from sqlalchemy.orm import Session

from app.errors import Unauthorized
from app.schemas.agent import Worker
from app.services.trust_registry import TrustRegistry
from app.services.worker_directory import WorkerDirectory


def require_owner(owner_id: str, caller: str) -> None:
    if caller != owner_id:
        raise Unauthorized(f"{caller} is not the owner")


def require_trusted(db: Session, caller: str) -> Worker:
    """Check the caller's registered codehash against the trust registry.

    Evaluated live on every call, so revoking a codehash deauthorizes every
    worker registered under it immediately. NotFound from the lookup propagates.
    """
    worker = WorkerDirectory(db).lookup(caller)
    if not TrustRegistry(db).contains(worker.codehash):
        raise Unauthorized(f"codehash {worker.codehash} is not approved")
    return worker
