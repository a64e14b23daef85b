# src/mysociety/services/conversations.py
"""Read-side assembly of threads into per-resident conversations."""

from __future__ import annotations

from sqlalchemy.orm import Session

from mysociety.db.time import ensure_utc
from mysociety.models.message import Message
from mysociety.repositories.message_repo import MessageRepository
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.services.authorization import Actor, MessageGuard
from mysociety.services.errors import AccessDenied, MessageNotFound

Conversation = list[Message]


def _last_activity(conversation: Conversation) -> tuple:
    last = conversation[-1]
    return ensure_utc(last.created_at), last.id


class ConversationAssembler:
    """Build conversations from stored messages without mutating anything."""

    def __init__(self, db: Session) -> None:
        self.messages = MessageRepository(db)
        self.guard = MessageGuard(self.messages, ResidentDirectory(db))

    def conversations_for_resident(self, resident_id: int, resident_user_id: int) -> list[Conversation]:
        """Return every conversation touching a resident, most recently active first.

        Threads started by an administrator for the resident are combined with
        legacy threads the resident's own account started. A root that matches
        both rules appears once.

        Args:
            resident_id: Resident the conversations belong to.
            resident_user_id: Account id the resident logs in with.

        Returns:
            Conversations ordered by the creation time of their last message,
            newest first. Each conversation lists its root then its replies
            oldest first.
        """
        roots = self.messages.list_admin_roots_for_resident(resident_id)
        roots += self.messages.list_resident_roots_for_user(resident_user_id)

        seen: set[int] = set()
        conversations: list[Conversation] = []
        for root in roots:
            if root.id in seen:
                continue
            seen.add(root.id)
            conversations.append([root, *self.messages.list_replies(root.id)])

        conversations.sort(key=_last_activity, reverse=True)
        return conversations

    def thread_by_initial_id(self, initial_message_id: int) -> Conversation | None:
        """Return a thread by its initiating message id.

        Returns None when the id is unknown or names a reply.
        """
        root = self.messages.get_by_id(initial_message_id)
        if root is None or not root.is_thread_root:
            return None
        return [root, *self.messages.list_replies(root.id)]

    def conversations_for_actor(self, actor: Actor, resident_id: int) -> list[Conversation]:
        """Return a resident's conversations after checking the caller is that resident."""
        if not actor.is_resident or actor.resident_id != resident_id:
            raise AccessDenied("Residents can only view their own conversations")
        return self.conversations_for_resident(resident_id, actor.user_id)

    def thread_for_actor(self, actor: Actor, initial_message_id: int) -> Conversation:
        """Return a thread the caller is allowed to see.

        Threads the caller is not party to are reported as missing so their
        existence is not disclosed.

        Raises:
            MessageNotFound: If the thread is missing, is a reply, or is hidden
                from the caller.
        """
        thread = self.thread_by_initial_id(initial_message_id)
        if thread is None or not self.guard.can_view_thread(actor, thread[0]):
            raise MessageNotFound(f"Thread {initial_message_id} not found")
        return thread

    def recent_messages(self, actor: Actor, limit: int, before: int | None = None) -> list[Message]:
        """Return all messages newest first for administrators."""
        if not actor.is_admin:
            raise AccessDenied("Administrator role required")
        return self.messages.list_recent(limit, before)
