# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import mysociety.models  # noqa: E402,F401
from mysociety.core.security import hash_key  # noqa: E402
from mysociety.db.session import Base  # noqa: E402
from mysociety.db.session import get_db as app_get_session  # noqa: E402
from mysociety.main import app as fastapi_app  # noqa: E402
from mysociety.models import Message, MessageStatus, Resident, SenderRole, User, UserRole  # noqa: E402
from mysociety.services.authorization import Actor  # noqa: E402
from mysociety.services.sessions import get_session_registry  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct horse"

_FLAT_COUNTER = count(101)
_BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Commits made by the services must not leak into the next test.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def reset_sessions() -> Iterator[None]:
    """Start every test with no live login sessions."""
    registry = get_session_registry()
    registry.clear()
    yield
    registry.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _create_resident_account(db_session: Session, name: str, username: str) -> User:
    resident = Resident(name=name, flat_number=f"A-{next(_FLAT_COUNTER)}")
    db_session.add(resident)
    db_session.flush()
    user = User(
        username=username,
        password_hash=hash_key(TEST_PASSWORD),
        role=UserRole.RESIDENT,
        resident_id=resident.id,
    )
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    return user


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return a persisted administrator."""
    user = User(username="admin", password_hash=hash_key(TEST_PASSWORD), role=UserRole.ADMIN)
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    return user


@pytest.fixture()
def resident_user(db_session: Session) -> User:
    """Create the primary resident and their account."""
    return _create_resident_account(db_session, "Asha Rao", "asha")


@pytest.fixture()
def other_resident_user(db_session: Session) -> User:
    """Create a second, unrelated resident."""
    return _create_resident_account(db_session, "Ben Ortiz", "ben")


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role, resident_id=user.resident_id)


@pytest.fixture()
def admin_actor(admin_user: User) -> Actor:
    return actor_for(admin_user)


@pytest.fixture()
def resident_actor(resident_user: User) -> Actor:
    return actor_for(resident_user)


@pytest.fixture()
def other_resident_actor(other_resident_user: User) -> Actor:
    return actor_for(other_resident_user)


def _headers_for(user: User) -> dict[str, str]:
    token = get_session_registry().open(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return _headers_for(admin_user)


@pytest.fixture()
def resident_headers(resident_user: User) -> dict[str, str]:
    """Return authorization headers for the primary resident."""
    return _headers_for(resident_user)


@pytest.fixture()
def other_resident_headers(other_resident_user: User) -> dict[str, str]:
    """Return authorization headers for the second resident."""
    return _headers_for(other_resident_user)


@pytest.fixture()
def make_message(db_session: Session) -> Callable[..., Message]:
    """Insert a message directly with a controlled creation time.

    `minutes` offsets `created_at` from a fixed base so ordering is explicit.
    """

    def _make(
        sender: User,
        recipient_resident_id: int,
        *,
        minutes: int,
        subject: str = "Notice",
        body: str = "Hello",
        parent: Message | None = None,
        status: MessageStatus = MessageStatus.UNREAD,
    ) -> Message:
        created_at = _BASE_TIME + timedelta(minutes=minutes)
        message = Message(
            sender_user_id=sender.id,
            sender_role=SenderRole.ADMIN if sender.role is UserRole.ADMIN else SenderRole.RESIDENT,
            recipient_resident_id=recipient_resident_id,
            parent_message_id=parent.id if parent is not None else None,
            subject=subject,
            body=body,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(message)
        db_session.flush()
        return message

    return _make
