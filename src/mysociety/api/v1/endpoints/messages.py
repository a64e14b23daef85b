# src/mysociety/api/v1/endpoints/messages.py
"""Message and conversation endpoints for the mySociety API."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from mysociety.api.v1.dependencies import (
    AdminDep,
    AssemblerDep,
    CurrentActorDep,
    ResidentDep,
    SessionDep,
    ThreadEngineDep,
)
from mysociety.core.settings import settings
from mysociety.models.message import Message
from mysociety.repositories.resident_repo import ResidentDirectory
from mysociety.schemas.message import (
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    ReplyCreate,
)
from mysociety.services.authorization import Actor
from mysociety.services.errors import AccessDenied, ResidentNotFound

router = APIRouter(tags=["messages"])


def _serialize_message(message: Message) -> MessageResponse:
    return MessageResponse.model_validate(message)


def _serialize_conversation(conversation: list[Message]) -> ConversationResponse:
    return ConversationResponse(
        thread_id=conversation[0].id,
        messages=[_serialize_message(message) for message in conversation],
    )


# --- Administrator routes ---------------------------------------------------------


@router.post(
    "/admin/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
)
async def send_message_to_resident(
    payload: MessageCreate,
    admin: AdminDep,
    db: SessionDep,
    engine: ThreadEngineDep,
) -> MessageResponse:
    """Start a conversation with a resident, addressed by id or flat number."""
    recipient_resident_id = payload.recipient_resident_id
    if payload.flat_number is not None:
        resident = ResidentDirectory(db).get_by_flat_number(payload.flat_number)
        if resident is None:
            raise ResidentNotFound(f"Resident with flat number {payload.flat_number} not found")
        recipient_resident_id = resident.id

    message = engine.send_initial(admin, recipient_resident_id, payload.subject, payload.body)
    return _serialize_message(message)


@router.get("/admin/messages", response_model=list[MessageResponse])
async def list_all_messages(
    admin: AdminDep,
    assembler: AssemblerDep,
    limit: int = Query(50, ge=1, le=settings.message_page_size_max),
    before: int | None = Query(None, description="Only return messages with a smaller id"),
) -> list[MessageResponse]:
    """List every message, newest first."""
    messages = assembler.recent_messages(admin, limit, before)
    return [_serialize_message(message) for message in messages]


@router.put("/admin/messages/{message_id}/read", response_model=MessageResponse)
async def admin_mark_message_read(
    message_id: int,
    admin: AdminDep,
    engine: ThreadEngineDep,
) -> MessageResponse:
    """Mark a resident-authored message as read."""
    return _serialize_message(engine.mark_read(admin, message_id))


# --- Resident routes --------------------------------------------------------------


def _ensure_own_resident(actor: Actor, resident_id: int) -> None:
    if actor.resident_id != resident_id:
        raise AccessDenied("Access denied for this resident")


@router.post(
    "/residents/{resident_id}/messages/reply",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
)
async def reply_to_message(
    resident_id: int,
    payload: ReplyCreate,
    resident: ResidentDep,
    engine: ThreadEngineDep,
) -> MessageResponse:
    """Reply inside a conversation the resident belongs to."""
    _ensure_own_resident(resident, resident_id)
    reply = engine.reply(resident, payload.parent_message_id, payload.body)
    return _serialize_message(reply)


@router.get(
    "/residents/{resident_id}/conversations",
    response_model=list[ConversationResponse],
)
async def get_resident_conversations(
    resident_id: int,
    resident: ResidentDep,
    assembler: AssemblerDep,
) -> list[ConversationResponse]:
    """Return the resident's conversations, most recently active first."""
    conversations = assembler.conversations_for_actor(resident, resident_id)
    return [_serialize_conversation(conversation) for conversation in conversations]


@router.put("/residents/messages/{message_id}/read", response_model=MessageResponse)
async def resident_mark_message_read(
    message_id: int,
    resident: ResidentDep,
    engine: ThreadEngineDep,
) -> MessageResponse:
    """Mark a message addressed to the resident as read."""
    return _serialize_message(engine.mark_read(resident, message_id))


# --- Shared routes ----------------------------------------------------------------


@router.get("/messages/threads/{message_id}", response_model=ConversationResponse)
async def get_thread(
    message_id: int,
    actor: CurrentActorDep,
    assembler: AssemblerDep,
) -> ConversationResponse:
    """Return one thread by the id of its initiating message."""
    return _serialize_conversation(assembler.thread_for_actor(actor, message_id))
