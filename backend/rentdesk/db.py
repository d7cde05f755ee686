# backend/rentdesk/db.py
from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    def to_dict(self) -> dict[str, Any]:
        """Column values only; relationships are resolved elsewhere."""
        return {c.key: getattr(self, c.key) for c in self.__table__.columns}


def _connect_args(url: str) -> dict[str, Any]:
    # TestClient and uvicorn workers hand the session across threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def get_db():
    """
    Request-scoped session.

    If any statement fails the transaction is aborted, so roll back before the
    exception propagates; later queries on a pooled connection would otherwise
    fail with the original error.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
