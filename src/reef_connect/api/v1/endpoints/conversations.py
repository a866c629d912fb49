"""Conversation and chat message endpoints for the connect feature."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Query, status

from reef_connect.db.time import as_utc
from reef_connect.models import ChatMessage
from reef_connect.schemas.conversation import ConversationCreate, MessageCreate, MessageResponse
from reef_connect.services import conversations as conversation_service
from reef_connect.services.notifications import message_preview
from reef_connect.services.profiles import get_profile, public_profile

from ..dependencies import CurrentProfileDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/connect", tags=["conversations"])


def serialize_message(message: ChatMessage | None) -> dict[str, Any] | None:
    """Serialize a ChatMessage into API payload form."""
    if message is None:
        return None
    return MessageResponse.model_validate(message).model_dump(by_alias=True, mode="json")


@router.get("/conversations")
async def list_conversations(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, Any]:
    """List the caller's conversations, most recent first."""
    summaries = conversation_service.list_conversations(db, current_user.id)
    return {
        "conversations": [
            {
                "id": summary.conversation.id,
                "otherUser": public_profile(summary.other_user),
                "lastMessage": serialize_message(summary.last_message),
                "unreadCount": summary.unread_count,
                "updatedAt": as_utc(summary.conversation.updated_at).isoformat(),
            }
            for summary in summaries
        ]
    }


@router.post("/conversations")
async def open_conversation(
    payload: ConversationCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Create or fetch the conversation with another checked-in user."""
    conversation = conversation_service.get_or_create_conversation(db, current_user.id, payload.user_id)
    other_user = get_profile(db, payload.user_id)
    return {
        "conversation": {
            "id": conversation.id,
            "otherUser": public_profile(other_user),
            "unreadCount": 0,
            "updatedAt": as_utc(conversation.updated_at).isoformat(),
        }
    }


@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: int,
    current_user: CurrentProfileDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=100),
    before: datetime | None = Query(None),
) -> dict[str, Any]:
    """Return a page of messages oldest-first; marks incoming messages read."""
    page = conversation_service.list_messages(db, conversation_id, current_user.id, limit, before)
    return {
        "messages": [serialize_message(message) for message in page.messages],
        "hasMore": page.has_more,
    }


@router.post("/conversations/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: int,
    payload: MessageCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Send a message; the recipient is notified after the response is sent."""
    sent = conversation_service.send_message(db, conversation_id, current_user.id, payload.content)

    background_tasks.add_task(
        dispatcher.notify_detached,
        sent.recipient_id,
        title=f"Message from {sent.sender_name}",
        body=message_preview(sent.message.content),
        url="/connect",
        tag=f"conversation-{conversation_id}",
    )

    return {"message": serialize_message(sent.message)}


@router.get("/unread")
async def get_unread_count(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, int]:
    """Total unread messages across the caller's conversations."""
    return {"unreadCount": conversation_service.unread_count(db, current_user.id)}
