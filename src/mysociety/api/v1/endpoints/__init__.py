# src/mysociety/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .messages import router as messages_router

__all__ = [
    "auth_router",
    "messages_router",
]
