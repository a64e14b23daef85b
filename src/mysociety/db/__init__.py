"""Database engine, sessions and time helpers."""

from .session import Base, SessionLocal, create_tables, get_db
from .time import ensure_utc, utcnow

__all__ = ["Base", "SessionLocal", "create_tables", "ensure_utc", "get_db", "utcnow"]
