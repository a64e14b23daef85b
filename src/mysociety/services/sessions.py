# src/mysociety/services/sessions.py
"""Session token issuance and lookup.

Tokens are signed JWTs. Each one carries a `jti` that must also be present in
the process-wide registry, so logging out revokes a token before its `exp`
claim runs out.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

from jose import JWTError, jwt

from mysociety.core.security import verify_key
from mysociety.core.settings import settings
from mysociety.db.time import utcnow
from mysociety.models.user import User
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.services.authorization import Actor
from mysociety.services.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    """Registry entry for one issued token."""

    user_id: int
    issued_at: datetime
    expires_at: datetime


_SESSIONS: dict[str, SessionRecord] = {}
_SESSION_LOCK = Lock()


def _expiry_from(issued_at: datetime) -> datetime:
    return issued_at + timedelta(minutes=settings.access_token_expire_minutes)


def _prune_expired(now: datetime) -> int:
    """Drop sessions whose token has expired. Caller holds `_SESSION_LOCK`."""
    expired = [session_id for session_id, record in _SESSIONS.items() if record.expires_at <= now]
    for session_id in expired:
        del _SESSIONS[session_id]
    return len(expired)


def create_access_token(
    subject: int | str,
    extra_claims: dict[str, str] | None = None,
    expires_at: datetime | None = None,
) -> str:
    """Create a signed JWT for the given user id."""
    to_encode: dict[str, object] = {"sub": str(subject)}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = expires_at or _expiry_from(utcnow())
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def authenticate(directory: ResidentDirectory, username: str, password: str) -> User:
    """Return the account matching the credentials.

    Raises:
        Unauthenticated: If the username is unknown or the password is wrong.
    """
    user = directory.get_user_by_username(username)
    if user is None or not verify_key(password, user.password_hash):
        logger.warning("Rejected login", extra={"username": username})
        raise Unauthenticated("Invalid credentials")
    return user


class SessionRegistry:
    """Process-wide map of live session ids to user ids."""

    def open(self, user_id: int) -> str:
        """Register a new session for a user and return its bearer token."""
        session_id = secrets.token_urlsafe(24)
        now = utcnow()
        expires_at = _expiry_from(now)
        with _SESSION_LOCK:
            _prune_expired(now)
            _SESSIONS[session_id] = SessionRecord(user_id=user_id, issued_at=now, expires_at=expires_at)
        logger.info("Opened session", extra={"user_id": user_id})
        return create_access_token(user_id, {"jti": session_id}, expires_at=expires_at)

    def close(self, token: str) -> bool:
        """Revoke a token; return False if it was not live.

        Expired tokens can still be closed so their entry is dropped.
        """
        try:
            claims = self._decode(token, verify_exp=False)
        except Unauthenticated:
            return False
        with _SESSION_LOCK:
            record = _SESSIONS.pop(str(claims.get("jti")), None)
        if record is None:
            return False
        logger.info("Closed session", extra={"user_id": record.user_id})
        return True

    def resolve(self, token: str, directory: ResidentDirectory) -> Actor:
        """Turn a bearer token into the acting identity.

        Raises:
            Unauthenticated: If the token is malformed, expired, revoked, or
                names an account that no longer exists.
        """
        with _SESSION_LOCK:
            _prune_expired(utcnow())
        claims = self._decode(token)
        with _SESSION_LOCK:
            record = _SESSIONS.get(str(claims.get("jti")))
        if record is None or str(record.user_id) != claims.get("sub"):
            raise Unauthenticated("Session is not active")

        user = directory.get_user(record.user_id)
        if user is None:
            raise Unauthenticated("User not found")
        return Actor(user_id=user.id, role=user.role, resident_id=user.resident_id)

    def active_count(self) -> int:
        with _SESSION_LOCK:
            return len(_SESSIONS)

    def clear(self) -> None:
        """Drop every session."""
        with _SESSION_LOCK:
            _SESSIONS.clear()

    @staticmethod
    def _decode(token: str, *, verify_exp: bool = True) -> dict[str, object]:
        try:
            return jwt.decode(
                token,
                settings.secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_exp": verify_exp},
            )
        except JWTError as err:
            raise Unauthenticated("Could not validate credentials") from err


def get_session_registry() -> SessionRegistry:
    """Return a session registry bound to the shared session map."""
    return SessionRegistry()
