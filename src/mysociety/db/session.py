"""Engine, session factory and declarative base."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from mysociety.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def _connect_args(url: str) -> dict[str, Any]:
    # SQLite connections are handed between the threadpool workers FastAPI uses.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.effective_database_url,
    connect_args=_connect_args(settings.effective_database_url),
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; uncommitted work is discarded on close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every table directly, bypassing migrations."""
    import mysociety.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    import mysociety.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
