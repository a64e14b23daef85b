"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mysociety.db.session import get_db
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.services.authorization import Actor
from mysociety.services.conversations import ConversationAssembler
from mysociety.services.errors import AccessDenied, Unauthenticated
from mysociety.services.sessions import SessionRegistry, get_session_registry
from mysociety.services.threads import ThreadEngine, get_thread_engine

# Missing headers are reported through Unauthenticated rather than FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_session_registry_dep() -> SessionRegistry:
    """Return the shared session registry."""
    return get_session_registry()


SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry_dep)]


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the raw bearer token.

    Raises:
        Unauthenticated: If no bearer credentials were sent.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Authentication required")
    return credentials.credentials


BearerTokenDep = Annotated[str, Depends(get_bearer_token)]


def get_current_actor(
    token: BearerTokenDep,
    db: SessionDep,
    registry: SessionRegistryDep,
) -> Actor:
    """Resolve the bearer token into the acting identity.

    Raises:
        Unauthenticated: If the token is invalid, expired or revoked.
    """
    return registry.resolve(token, ResidentDirectory(db))


CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]


def require_admin(actor: CurrentActorDep) -> Actor:
    """Allow only administrators through."""
    if not actor.is_admin:
        raise AccessDenied("Administrator role required")
    return actor


def require_resident(actor: CurrentActorDep) -> Actor:
    """Allow only resident accounts through."""
    if not actor.is_resident:
        raise AccessDenied("Resident role required")
    return actor


AdminDep = Annotated[Actor, Depends(require_admin)]
ResidentDep = Annotated[Actor, Depends(require_resident)]


def get_thread_engine_dep(db: SessionDep) -> ThreadEngine:
    return get_thread_engine(db)


def get_conversation_assembler_dep(db: SessionDep) -> ConversationAssembler:
    return ConversationAssembler(db)


ThreadEngineDep = Annotated[ThreadEngine, Depends(get_thread_engine_dep)]
AssemblerDep = Annotated[ConversationAssembler, Depends(get_conversation_assembler_dep)]
