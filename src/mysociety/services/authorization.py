# src/mysociety/services/authorization.py
"""Per-actor permission checks for message operations."""

from __future__ import annotations

from dataclasses import dataclass

from mysociety.models.message import Message, SenderRole
from mysociety.models.user import UserRole
from mysociety.repositories.message_repo import MessageRepository
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.services.errors import ResidentNotFound, ThreadNotFound


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation."""

    user_id: int
    role: UserRole
    resident_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_resident(self) -> bool:
        return self.role is UserRole.RESIDENT and self.resident_id is not None

    @property
    def sender_role(self) -> SenderRole:
        """Return the role stamped on messages this actor writes."""
        return SenderRole.ADMIN if self.is_admin else SenderRole.RESIDENT


@dataclass(frozen=True)
class Decision:
    """Outcome of a permission check; denial is an ordinary result."""

    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def permit(cls) -> Decision:
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> Decision:
        return cls(False, reason)


class MessageGuard:
    """Decide whether an actor may act on a message or thread.

    Role checks run before any lookup so that actors who could never be
    allowed do not learn whether a resident or thread exists.
    """

    def __init__(self, messages: MessageRepository, directory: ResidentDirectory) -> None:
        self.messages = messages
        self.directory = directory

    def can_send(self, actor: Actor, recipient_resident_id: int) -> Decision:
        """Check whether the actor may start a thread with a resident.

        Raises:
            ResidentNotFound: If an administrator addresses an unknown resident.
        """
        if not actor.is_admin:
            return Decision.deny("Only administrators can start a conversation")
        if not self.directory.exists_resident(recipient_resident_id):
            raise ResidentNotFound(f"Resident {recipient_resident_id} not found")
        return Decision.permit()

    def can_reply(self, actor: Actor, parent_message_id: int) -> Decision:
        """Check whether the actor may reply inside a thread.

        Allowed for the thread's recipient resident and for the resident who
        started the thread.

        Raises:
            ThreadNotFound: If the parent message does not exist.
        """
        if not actor.is_resident:
            return Decision.deny("Only residents can reply to messages")
        root = self.thread_root(parent_message_id)
        if self.is_party(actor, root):
            return Decision.permit()
        return Decision.deny("Unauthorized to reply to this message")

    def can_mark_read(self, actor: Actor, message: Message) -> Decision:
        """Check whether the actor may mark a message as read."""
        if actor.is_admin:
            if message.sender_role is SenderRole.RESIDENT:
                return Decision.permit()
            return Decision.deny("Administrators can only mark resident messages as read")
        if actor.is_resident and message.recipient_resident_id == actor.resident_id:
            return Decision.permit()
        return Decision.deny("Unauthorized to mark this message as read")

    def can_view_thread(self, actor: Actor, root: Message) -> Decision:
        """Check whether the actor may read a whole thread."""
        if actor.is_admin or self.is_party(actor, root):
            return Decision.permit()
        return Decision.deny("Unauthorized to view this thread")

    def thread_root(self, message_id: int, *, for_update: bool = False) -> Message:
        """Return the thread-initiating message for any message in a thread.

        Raises:
            ThreadNotFound: If the message does not exist.
        """
        message = self.messages.get_by_id(message_id, for_update=for_update)
        if message is None:
            raise ThreadNotFound(f"Parent message {message_id} not found")
        if message.is_thread_root:
            return message
        root = self.messages.get_by_id(message.thread_id, for_update=for_update)
        if root is None:  # pragma: no cover - guarded by the foreign key
            raise ThreadNotFound(f"Parent message {message.thread_id} not found")
        return root

    def is_party(self, actor: Actor, root: Message) -> bool:
        """Return True when a resident actor belongs to the thread.

        The actor belongs when the thread is addressed to their household or
        when their household started it.
        """
        if not actor.is_resident:
            return False
        if root.recipient_resident_id == actor.resident_id:
            return True
        return self.directory.resident_id_for_user(root.sender_user_id) == actor.resident_id
