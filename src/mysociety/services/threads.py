# src/mysociety/services/threads.py
"""Thread engine: starting threads, replying, and read-state transitions."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from mysociety.core.settings import settings
from mysociety.db.time import utcnow
from mysociety.models.message import Message, MessageStatus
from mysociety.repositories.message_repo import MessageRepository
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.services.authorization import Actor, Decision, MessageGuard
from mysociety.services.errors import AccessDenied, MessageNotFound, ValidationFailure

logger = logging.getLogger(__name__)


def _require_text(field: str, value: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailure(f"{field} must not be empty")
    return text


class ThreadEngine:
    """Service creating messages and moving them from UNREAD to READ.

    Every public method is one transaction: permission checks and lookups run
    first, writes follow, and a single commit publishes them. Nothing is
    written when a check fails.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.messages = MessageRepository(db)
        self.directory = ResidentDirectory(db)
        self.guard = MessageGuard(self.messages, self.directory)

    def send_initial(
        self,
        actor: Actor,
        recipient_resident_id: int,
        subject: str,
        body: str,
    ) -> Message:
        """Start a new thread from an administrator to a resident.

        Raises:
            AccessDenied: If the actor is not an administrator.
            ResidentNotFound: If the resident does not exist.
            ValidationFailure: If subject or body is blank.
        """
        self._enforce(actor, "send", self.guard.can_send(actor, recipient_resident_id))
        subject = _require_text("Subject", subject)
        body = _require_text("Body", body)

        message = self.messages.create(
            sender_user_id=actor.user_id,
            sender_role=actor.sender_role,
            recipient_resident_id=recipient_resident_id,
            subject=subject,
            body=body,
        )
        self.db.commit()
        logger.info(
            "Started thread",
            extra={"message_id": message.id, "recipient_resident_id": recipient_resident_id},
        )
        return message

    def reply(self, actor: Actor, parent_message_id: int, body: str) -> Message:
        """Append a reply to the thread containing `parent_message_id`.

        Replies always hang off the thread-initiating message. When the
        thread's recipient resident replies, the initiating message counts as
        read.

        Raises:
            AccessDenied: If the actor is not a party to the thread.
            ThreadNotFound: If the parent message does not exist.
            ValidationFailure: If the body is blank.
        """
        self._enforce(actor, "reply", self.guard.can_reply(actor, parent_message_id))
        body = _require_text("Body", body)
        root = self.guard.thread_root(parent_message_id, for_update=True)

        reply = self.messages.create(
            sender_user_id=actor.user_id,
            sender_role=actor.sender_role,
            recipient_resident_id=root.recipient_resident_id,
            parent_message_id=root.id,
            subject=f"{settings.reply_subject_prefix}{root.subject}",
            body=body,
        )
        acknowledged = (
            actor.resident_id == root.recipient_resident_id
            and root.status is MessageStatus.UNREAD
        )
        if acknowledged:
            self.messages.set_status(root, MessageStatus.READ, utcnow())
        self.db.commit()
        logger.info(
            "Stored reply",
            extra={"message_id": reply.id, "thread_id": root.id, "acknowledged": acknowledged},
        )
        return reply

    def mark_read(self, actor: Actor, message_id: int) -> Message:
        """Mark a message as read; already-read messages come back untouched.

        Raises:
            MessageNotFound: If the message does not exist.
            AccessDenied: If the actor may not mark this message.
        """
        message = self.messages.get_by_id(message_id, for_update=True)
        if message is None:
            raise MessageNotFound(f"Message {message_id} not found")
        self._enforce(actor, "mark_read", self.guard.can_mark_read(actor, message))

        if message.status is MessageStatus.READ:
            return message
        self.messages.set_status(message, MessageStatus.READ, utcnow())
        self.db.commit()
        logger.info("Marked message read", extra={"message_id": message.id})
        return message

    @staticmethod
    def _enforce(actor: Actor, action: str, decision: Decision) -> None:
        if not decision:
            logger.warning(
                "Denied message action",
                extra={"action": action, "user_id": actor.user_id, "reason": decision.reason},
            )
            raise AccessDenied(decision.reason)


def get_thread_engine(db: Session) -> ThreadEngine:
    """Return a thread engine bound to a request session."""
    return ThreadEngine(db)
