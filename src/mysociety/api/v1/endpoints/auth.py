# src/mysociety/api/v1/endpoints/auth.py
"""Authentication endpoints for the mySociety API."""

from __future__ import annotations

from fastapi import APIRouter

from mysociety.api.v1.dependencies import (
    BearerTokenDep,
    CurrentActorDep,
    SessionDep,
    SessionRegistryDep,
)
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.schemas.auth import ActorResponse, LoginRequest, LoginResponse
from mysociety.services.errors import Unauthenticated
from mysociety.services.sessions import authenticate

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    db: SessionDep,
    registry: SessionRegistryDep,
) -> LoginResponse:
    """Exchange a username and password for a session token."""
    user = authenticate(ResidentDirectory(db), payload.username, payload.password)
    token = registry.open(user.id)

    return LoginResponse(
        token=token,
        role=user.role,
        user_id=user.id,
        resident_id=user.resident_id,
        flat_number=user.resident.flat_number if user.resident is not None else None,
    )


@router.post("/logout")
async def logout(token: BearerTokenDep, registry: SessionRegistryDep) -> dict[str, str]:
    """Revoke the session behind the bearer token."""
    if not registry.close(token):
        raise Unauthenticated("Session is not active")
    return {"status": "logged_out"}


@router.get("/me", response_model=ActorResponse)
async def whoami(actor: CurrentActorDep) -> ActorResponse:
    """Return the identity the bearer token resolves to."""
    return ActorResponse(user_id=actor.user_id, role=actor.role, resident_id=actor.resident_id)
