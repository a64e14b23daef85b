# src/mysociety/models/__init__.py
"""SQLAlchemy models for the mySociety messaging service."""

from .message import Message, MessageStatus, SenderRole
from .user import Resident, User, UserRole

__all__ = [
    "Message", "MessageStatus", "SenderRole",
    "Resident", "User", "UserRole",
]
