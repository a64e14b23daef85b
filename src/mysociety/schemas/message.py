# src/mysociety/schemas/message.py
"""Message-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mysociety.models.message import MessageStatus, SenderRole


class MessageCreate(BaseModel):
    """Schema for an administrator starting a thread with a resident.

    The resident is addressed either by id or by flat number.
    """

    recipient_resident_id: int | None = Field(None, description="Resident to address")
    flat_number: str | None = Field(None, description="Flat number of the resident to address")
    subject: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_recipient(self) -> "MessageCreate":
        """Require exactly one way of addressing the resident."""
        if (self.recipient_resident_id is None) == (self.flat_number is None):
            raise ValueError("Provide exactly one of recipient_resident_id or flat_number")
        return self


class ReplyCreate(BaseModel):
    """Schema for a resident replying inside a thread."""

    parent_message_id: int = Field(..., description="Any message of the thread being answered")
    body: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    """Schema for message information returned by the API."""

    id: int
    sender_user_id: int
    sender_role: SenderRole
    recipient_resident_id: int
    parent_message_id: int | None
    subject: str
    body: str
    status: MessageStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    """A thread: the initiating message followed by its replies."""

    thread_id: int
    messages: list[MessageResponse]
