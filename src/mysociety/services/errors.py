# src/mysociety/services/errors.py
"""Domain errors raised by the messaging services.

Each error carries the HTTP status the API layer answers with, so endpoint
code never needs to translate them by hand.
"""

from fastapi import status


class MessagingError(RuntimeError):
    """Base exception for every failure surfaced by the messaging core."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(MessagingError):
    """Raised when no valid actor identity could be resolved."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AccessDenied(MessagingError):
    """Raised when the actor is known but the action is refused."""

    status_code = status.HTTP_403_FORBIDDEN


class ResidentNotFound(MessagingError):
    """Raised when a target resident does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ThreadNotFound(MessagingError):
    """Raised when a reply targets a parent message that does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class MessageNotFound(MessagingError):
    """Raised when a message or thread lookup finds nothing."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailure(MessagingError):
    """Raised for malformed input that slipped past schema validation."""

    status_code = 422
