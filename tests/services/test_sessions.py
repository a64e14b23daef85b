# tests/services/test_sessions.py
"""Tests for credential checks and the session registry."""

from datetime import timedelta

import pytest
from jose import jwt

from mysociety.core.settings import settings
from mysociety.db.time import utcnow
from mysociety.models import UserRole
from mysociety.repositories import ResidentDirectory
from mysociety.services import sessions
from mysociety.services.errors import Unauthenticated
from mysociety.services.sessions import (
    SessionRegistry,
    authenticate,
    create_access_token,
    get_session_registry,
)

TEST_PASSWORD = "correct horse"


@pytest.fixture()
def directory(db_session) -> ResidentDirectory:
    return ResidentDirectory(db_session)


def test_authenticate_success(directory, resident_user) -> None:
    assert authenticate(directory, "asha", TEST_PASSWORD).id == resident_user.id


@pytest.mark.parametrize(("username", "password"), [("asha", "wrong"), ("nobody", "correct horse")])
def test_authenticate_rejects(directory, resident_user, username, password) -> None:
    with pytest.raises(Unauthenticated) as exc_info:
        authenticate(directory, username, password)
    assert exc_info.value.detail == "Invalid credentials"


def test_open_and_resolve(directory, resident_user) -> None:
    registry = get_session_registry()
    token = registry.open(resident_user.id)

    actor = registry.resolve(token, directory)

    assert actor.user_id == resident_user.id
    assert actor.role is UserRole.RESIDENT
    assert actor.resident_id == resident_user.resident_id
    assert registry.active_count() == 1


def test_registries_share_sessions(directory, admin_user) -> None:
    token = SessionRegistry().open(admin_user.id)
    assert SessionRegistry().resolve(token, directory).is_admin


def test_close_revokes(directory, admin_user) -> None:
    registry = get_session_registry()
    token = registry.open(admin_user.id)

    assert registry.close(token) is True
    assert registry.close(token) is False
    with pytest.raises(Unauthenticated):
        registry.resolve(token, directory)


def test_close_rejects_garbage() -> None:
    assert get_session_registry().close("not-a-token") is False


def test_token_without_session_rejected(directory, admin_user) -> None:
    """A correctly signed token that was never registered does not authenticate."""
    token = create_access_token(admin_user.id, {"jti": "forged"})
    with pytest.raises(Unauthenticated) as exc_info:
        get_session_registry().resolve(token, directory)
    assert exc_info.value.detail == "Session is not active"


def test_expired_token_rejected(directory, admin_user) -> None:
    registry = get_session_registry()
    token = registry.open(admin_user.id)
    claims = jwt.get_unverified_claims(token)
    claims["exp"] = utcnow() - timedelta(minutes=1)
    expired = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)

    with pytest.raises(Unauthenticated) as exc_info:
        registry.resolve(expired, directory)
    assert exc_info.value.detail == "Could not validate credentials"


def test_token_signed_with_other_key(directory, admin_user) -> None:
    claims = {"sub": str(admin_user.id), "jti": "x", "exp": utcnow() + timedelta(minutes=5)}
    token = jwt.encode(claims, "some-other-key", algorithm=settings.jwt_algorithm)
    with pytest.raises(Unauthenticated):
        get_session_registry().resolve(token, directory)


def test_deleted_user_rejected(directory, db_session, admin_user) -> None:
    registry = get_session_registry()
    token = registry.open(admin_user.id)
    db_session.delete(admin_user)
    db_session.flush()

    with pytest.raises(Unauthenticated) as exc_info:
        registry.resolve(token, directory)
    assert exc_info.value.detail == "User not found"


def test_token_lifetime_follows_settings(admin_user) -> None:
    token = get_session_registry().open(admin_user.id)
    claims = jwt.get_unverified_claims(token)
    lifetime = claims["exp"] - int(utcnow().timestamp())
    assert lifetime <= settings.access_token_expire_minutes * 60
    assert lifetime > settings.access_token_expire_minutes * 60 - 30


class TestExpiredSessions:
    @pytest.fixture()
    def expired_tokens(self, monkeypatch, admin_user):
        """Issue tokens that are already past their expiry."""
        monkeypatch.setattr(settings, "access_token_expire_minutes", -1)
        registry = get_session_registry()
        return [registry.open(admin_user.id) for _ in range(5)]

    def test_resolve_drops_expired_sessions(self, directory, expired_tokens) -> None:
        registry = get_session_registry()

        for token in expired_tokens:
            with pytest.raises(Unauthenticated):
                registry.resolve(token, directory)

        assert registry.active_count() == 0

    def test_open_drops_expired_sessions(self, monkeypatch, expired_tokens, admin_user) -> None:
        stale_jti = jwt.get_unverified_claims(expired_tokens[-1])["jti"]
        assert stale_jti in sessions._SESSIONS
        monkeypatch.setattr(settings, "access_token_expire_minutes", 30)

        fresh = get_session_registry().open(admin_user.id)

        assert stale_jti not in sessions._SESSIONS
        assert list(sessions._SESSIONS) == [jwt.get_unverified_claims(fresh)["jti"]]

    def test_close_accepts_expired_token(self, expired_tokens) -> None:
        registry = get_session_registry()
        before = registry.active_count()

        assert registry.close(expired_tokens[-1]) is True
        assert registry.active_count() == before - 1
        assert registry.close(expired_tokens[-1]) is False

    def test_record_matches_token_expiry(self, admin_user) -> None:
        token = get_session_registry().open(admin_user.id)
        claims = jwt.get_unverified_claims(token)

        record = sessions._SESSIONS[claims["jti"]]
        assert int(record.expires_at.timestamp()) == claims["exp"]
