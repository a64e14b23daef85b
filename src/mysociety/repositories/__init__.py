"""Repository layer for persistence access."""

from .message_repo import MessageRepository
from .resident_repo import ResidentDirectory

__all__ = ["MessageRepository", "ResidentDirectory"]
