"""Data access helpers for working with messages."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from mysociety.models.message import Message, MessageStatus, SenderRole

__all__ = ["MessageRepository"]


class MessageRepository:
    """Thin wrapper around database access for message entities.

    The repository never commits; the service layer owns transaction
    boundaries.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, message_id: int, *, for_update: bool = False) -> Message | None:
        """Return a message by identifier.

        Args:
            message_id: Primary key of the message.
            for_update: Lock the row until the surrounding transaction ends.
        """
        stmt = select(Message).where(Message.id == message_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalars().first()

    def list_replies(self, root_id: int) -> list[Message]:
        """Return every reply to a thread root, oldest first."""
        result = self.session.execute(
            select(Message)
            .where(Message.parent_message_id == root_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        return list(result.scalars())

    def list_admin_roots_for_resident(self, resident_id: int) -> list[Message]:
        """Return admin-initiated thread roots addressed to a resident."""
        result = self.session.execute(
            select(Message)
            .where(
                Message.recipient_resident_id == resident_id,
                Message.sender_role == SenderRole.ADMIN,
                Message.parent_message_id.is_(None),
            )
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        return list(result.scalars())

    def list_resident_roots_for_user(self, user_id: int) -> list[Message]:
        """Return thread roots a resident's account started itself."""
        result = self.session.execute(
            select(Message)
            .where(
                Message.sender_user_id == user_id,
                Message.sender_role == SenderRole.RESIDENT,
                Message.parent_message_id.is_(None),
            )
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        return list(result.scalars())

    def list_recent(self, limit: int, before: int | None = None) -> list[Message]:
        """Return messages newest first, optionally only those below an id."""
        stmt = select(Message)
        if before is not None:
            stmt = stmt.where(Message.id < before)
        stmt = stmt.order_by(Message.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars())

    def create(
        self,
        *,
        sender_user_id: int,
        sender_role: SenderRole,
        recipient_resident_id: int,
        subject: str,
        body: str,
        parent_message_id: int | None = None,
    ) -> Message:
        """Insert a new UNREAD message and return the flushed ORM instance."""
        message = Message(
            sender_user_id=sender_user_id,
            sender_role=sender_role,
            recipient_resident_id=recipient_resident_id,
            parent_message_id=parent_message_id,
            subject=subject,
            body=body,
            status=MessageStatus.UNREAD,
        )
        self.session.add(message)
        self.session.flush()
        return message

    def set_status(self, message: Message, new_status: MessageStatus, when: datetime) -> Message:
        """Write a new status and stamp `updated_at`."""
        message.status = new_status
        message.updated_at = when
        self.session.flush()
        return message
