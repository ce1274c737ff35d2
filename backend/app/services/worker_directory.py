from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.models import WorkerRecord
from app.errors import NotFound
from app.schemas.agent import Worker
from app.utils.time import utc_now

logger = logging.getLogger("app.worker_directory")


class WorkerDirectory:
    """Maps a calling account to the worker it last registered as.

    Last write wins: re-registering replaces the record, nothing is merged.
    """

    def __init__(self, db: Session):
        self.db = db

    def register(self, account_id: str, codehash: str) -> Worker:
        row = self.db.get(WorkerRecord, account_id)
        if row is None:
            row = WorkerRecord(account_id=account_id, codehash=codehash, registered_at=utc_now())
            self.db.add(row)
        else:
            row.codehash = codehash
            row.registered_at = utc_now()
        self.db.flush()
        logger.info("Worker registered: account=%s codehash=%s", account_id, codehash)
        return Worker(codehash=row.codehash)

    def lookup(self, account_id: str) -> Worker:
        row = self.db.get(WorkerRecord, account_id)
        if row is None:
            raise NotFound(f"no worker found for {account_id}")
        return Worker(codehash=row.codehash)
