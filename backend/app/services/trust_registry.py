from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from app.db.models import ApprovedCodehash
from app.utils.time import utc_now

logger = logging.getLogger("app.trust_registry")


class TrustRegistry:
    """Owner-curated set of codehashes trusted to perform governance actions.

    Owner checks happen in the contract root; this class only touches storage.
    Mutations are flushed, not committed, so the caller controls the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def contains(self, codehash: str) -> bool:
        return self.db.get(ApprovedCodehash, codehash) is not None

    def insert(self, codehash: str) -> bool:
        """Add a codehash. Returns False if it was already present."""
        if self.contains(codehash):
            return False
        self.db.add(ApprovedCodehash(codehash=codehash, approved_at=utc_now()))
        self.db.flush()
        logger.info("Codehash approved: %s", codehash)
        return True

    def remove(self, codehash: str) -> bool:
        row = self.db.get(ApprovedCodehash, codehash)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        logger.info("Codehash revoked: %s", codehash)
        return True

    def list(self) -> List[str]:
        rows = self.db.query(ApprovedCodehash).order_by(ApprovedCodehash.codehash.asc()).all()
        return [r.codehash for r in rows]
