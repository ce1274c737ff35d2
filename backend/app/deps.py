from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_contract():
    """Return the process-wide contract root.

    Bound in app.main at import time; tests override this dependency.
    """
    from app.main import contract

    return contract
