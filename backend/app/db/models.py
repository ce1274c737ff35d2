from __future__ import annotations

from sqlalchemy import Column, String, DateTime, Integer

from app.db.session import Base


class ContractState(Base):
    """Singleton row; its presence marks the contract root as initialized."""

    __tablename__ = "contract_state"

    id = Column(Integer, primary_key=True)  # always 1
    owner_id = Column(String, nullable=False)
    initialized_at = Column(DateTime(timezone=True), nullable=False)


class ApprovedCodehash(Base):
    __tablename__ = "approved_codehashes"

    codehash = Column(String, primary_key=True)
    approved_at = Column(DateTime(timezone=True), nullable=False)


class WorkerRecord(Base):
    __tablename__ = "workers"

    account_id = Column(String, primary_key=True, index=True)
    codehash = Column(String, nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=False)
