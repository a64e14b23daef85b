# src/mysociety/models/message.py
"""Models describing threaded messages between administrators and residents."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from mysociety.db.session import Base
from mysociety.db.time import utcnow


class SenderRole(str, Enum):
    """Role the author held when the message was written."""

    ADMIN = "ADMIN"
    RESIDENT = "RESIDENT"


class MessageStatus(str, Enum):
    """Read state; only ever moves from UNREAD to READ."""

    UNREAD = "UNREAD"
    READ = "READ"


class Message(Base):
    """Single message belonging to a conversation with one resident.

    A message without a parent starts a thread. Replies point at the
    thread-initiating message and share its recipient resident.
    """

    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_recipient_root", "recipient_resident_id", "parent_message_id"),
        Index("ix_message_parent", "parent_message_id"),
        Index("ix_message_sender", "sender_user_id", "sender_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    sender_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    sender_role: Mapped[SenderRole] = mapped_column(
        SAEnum(SenderRole, native_enum=False, length=16),
        nullable=False,
    )
    recipient_resident_id: Mapped[int] = mapped_column(Integer, ForeignKey("resident.id"), nullable=False)
    # Ids only; the thread root is looked up through the repository.
    parent_message_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("message.id"),
        nullable=True,
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[MessageStatus] = mapped_column(
        SAEnum(MessageStatus, native_enum=False, length=16),
        nullable=False,
        default=MessageStatus.UNREAD,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    # Touched only when status changes.
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_thread_root(self) -> bool:
        """Return True when this message starts a thread."""
        return self.parent_message_id is None

    @property
    def thread_id(self) -> int:
        """Return the id of the thread-initiating message."""
        return self.parent_message_id if self.parent_message_id is not None else self.id
