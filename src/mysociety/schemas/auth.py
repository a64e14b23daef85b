"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel, Field

from mysociety.models.user import UserRole


class LoginRequest(BaseModel):
    """Credentials submitted at login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Session token plus the identity it stands for."""

    token: str
    role: UserRole
    user_id: int
    resident_id: int | None = None
    flat_number: str | None = None


class ActorResponse(BaseModel):
    """Identity resolved from the current bearer token."""

    user_id: int
    role: UserRole
    resident_id: int | None = None
