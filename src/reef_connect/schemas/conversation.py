"""Conversation and chat message Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel


class ConversationCreate(CamelModel):
    """Schema for opening a conversation with another user."""

    user_id: str = Field(..., min_length=1, description="Counterpart user id")


class MessageCreate(CamelModel):
    """Schema for sending a chat message; length rules are enforced by the service."""

    content: str


class MessageResponse(CamelModel):
    """Chat message returned by the API."""

    id: int
    conversation_id: int
    sender_id: str
    content: str
    created_at: datetime
    read_at: datetime | None
