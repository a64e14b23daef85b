# src/mysociety/services/__init__.py
"""Business logic services for the messaging core."""

from .authorization import Actor, Decision, MessageGuard
from .conversations import ConversationAssembler
from .sessions import SessionRegistry
from .threads import ThreadEngine

__all__ = [
    "Actor",
    "Decision",
    "MessageGuard",
    "ConversationAssembler",
    "SessionRegistry",
    "ThreadEngine",
]
