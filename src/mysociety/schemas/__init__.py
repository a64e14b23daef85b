# src/mysociety/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import ActorResponse, LoginRequest, LoginResponse
from .message import ConversationResponse, MessageCreate, MessageResponse, ReplyCreate

__all__ = [
    "ActorResponse", "LoginRequest", "LoginResponse",
    "ConversationResponse", "MessageCreate", "MessageResponse", "ReplyCreate",
]
