"""Conversations and chat messages between checked-in users."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reef_connect.core.errors import Forbidden, InvalidOperation, NotFound, ValidationError
from reef_connect.core.settings import settings
from reef_connect.db.time import utcnow
from reef_connect.models import ChatMessage, Conversation, Profile
from reef_connect.models.conversation import normalize_pair
from reef_connect.services.blocklist import blocked_counterparts, is_blocked
from reef_connect.services.checkins import has_active_checkin

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class SentMessage:
    """A persisted message plus what the notification needs."""

    message: ChatMessage
    recipient_id: str
    sender_name: str


@dataclass(frozen=True)
class MessagePage:
    """Messages in chronological order and whether older ones exist."""

    messages: list[ChatMessage]
    has_more: bool


@dataclass(frozen=True)
class ConversationSummary:
    """Row of the caller's conversation list."""

    conversation: Conversation
    other_user: Profile | None
    last_message: ChatMessage | None
    unread_count: int


def _find_by_pair(db: Session, user_a: str, user_b: str) -> Conversation | None:
    first, second = normalize_pair(user_a, user_b)
    return (
        db.query(Conversation)
        .filter(Conversation.user1_id == first, Conversation.user2_id == second)
        .first()
    )


def _participant_query(db: Session, user_id: str):
    return db.query(Conversation).filter(
        or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id)
    )


def get_conversation_for(db: Session, conversation_id: int, user_id: str) -> Conversation:
    """Return the conversation if ``user_id`` takes part in it."""
    conversation = db.get(Conversation, conversation_id)
    if conversation is None or not conversation.has_participant(user_id):
        raise NotFound("Conversation not found")
    return conversation


def get_or_create_conversation(db: Session, requester_id: str, counterpart_id: str) -> Conversation:
    """Return the single conversation for the pair, creating it if needed.

    Creation is an insert guarded by the unique pair constraint. A concurrent
    request that wins the insert makes ours fail inside a savepoint, after
    which the winner's row is read back, so every caller sees the same id.
    """
    if requester_id == counterpart_id:
        raise InvalidOperation("Cannot start conversation with yourself")

    if db.get(Profile, counterpart_id) is None:
        raise NotFound("User not found")

    if is_blocked(db, requester_id, counterpart_id):
        raise Forbidden("Cannot message this user")

    if not has_active_checkin(db, counterpart_id):
        raise Forbidden("This user is not currently checked in")

    conversation = _find_by_pair(db, requester_id, counterpart_id)
    if conversation is not None:
        return conversation

    user1_id, user2_id = normalize_pair(requester_id, counterpart_id)
    try:
        with db.begin_nested():
            conversation = Conversation(user1_id=user1_id, user2_id=user2_id)
            db.add(conversation)
        db.commit()
    except IntegrityError:
        conversation = _find_by_pair(db, requester_id, counterpart_id)
        if conversation is None:
            raise
        logger.debug("Conversation %s created concurrently; reusing it", conversation.id)
        return conversation

    db.refresh(conversation)
    logger.info("Conversation %s opened between %s and %s", conversation.id, user1_id, user2_id)
    return conversation


def validate_content(content: object) -> str:
    """Return trimmed message text or raise ValidationError.

    The length limit applies to the text as sent, surrounding whitespace included.
    """
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content is required")
    if len(content) > settings.message_max_length:
        raise ValidationError(f"Message too long (max {settings.message_max_length} characters)")
    return content.strip()


def send_message(db: Session, conversation_id: int, sender_id: str, content: object) -> SentMessage:
    """Append a message after validation, participation, check-in and block checks."""
    text = validate_content(content)
    conversation = get_conversation_for(db, conversation_id, sender_id)

    if not has_active_checkin(db, sender_id):
        raise Forbidden("You must be checked in to send messages")

    recipient_id = conversation.other_participant(sender_id)
    if is_blocked(db, sender_id, recipient_id):
        raise Forbidden("Cannot send message to this user")

    now = utcnow()
    message = ChatMessage(
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=text,
        created_at=now,
    )
    db.add(message)
    conversation.updated_at = now
    db.commit()
    db.refresh(message)

    sender = db.get(Profile, sender_id)
    sender_name = (sender.display_name if sender else None) or "Someone"
    return SentMessage(message=message, recipient_id=recipient_id, sender_name=sender_name)


def list_messages(
    db: Session,
    conversation_id: int,
    user_id: str,
    limit: int | None = None,
    before: datetime | None = None,
) -> MessagePage:
    """Return a page of messages oldest-first and mark the caller's unread ones read.

    ``before`` is an exclusive ``created_at`` bound for loading older pages.
    """
    get_conversation_for(db, conversation_id, user_id)
    page_size = max(1, min(limit or settings.message_page_size, MAX_PAGE_SIZE))

    query = db.query(ChatMessage).filter(ChatMessage.conversation_id == conversation_id)
    if before is not None:
        if before.tzinfo is not None:
            before = before.astimezone(UTC)
        query = query.filter(ChatMessage.created_at < before)
    newest_first = (
        query.order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc()).limit(page_size).all()
    )

    mark_read(db, conversation_id, user_id)

    return MessagePage(messages=list(reversed(newest_first)), has_more=len(newest_first) == page_size)


def mark_read(db: Session, conversation_id: int, reader_id: str) -> int:
    """Stamp ``read_at`` on every unread message the reader did not send."""
    updated = (
        db.query(ChatMessage)
        .filter(
            ChatMessage.conversation_id == conversation_id,
            ChatMessage.sender_id != reader_id,
            ChatMessage.read_at.is_(None),
        )
        .update({ChatMessage.read_at: utcnow()}, synchronize_session="fetch")
    )
    db.commit()
    return updated


def _unread_filter(user_id: str):
    return (ChatMessage.sender_id != user_id, ChatMessage.read_at.is_(None))


def unread_count(db: Session, user_id: str) -> int:
    """Count unread messages addressed to the user across all conversations."""
    count = (
        db.query(func.count(ChatMessage.id))
        .join(Conversation, Conversation.id == ChatMessage.conversation_id)
        .filter(or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id))
        .filter(*_unread_filter(user_id))
        .scalar()
    )
    return int(count or 0)


def list_conversations(db: Session, user_id: str) -> list[ConversationSummary]:
    """Return the user's conversations, most recently active first.

    Conversations with a blocked counterpart, in either direction, are left out.
    """
    conversations = _participant_query(db, user_id).order_by(
        Conversation.updated_at.desc(), Conversation.id.desc()
    ).all()
    hidden = blocked_counterparts(db, user_id)
    visible = [c for c in conversations if c.other_participant(user_id) not in hidden]
    if not visible:
        return []

    ids = [c.id for c in visible]
    unread_rows = (
        db.query(ChatMessage.conversation_id, func.count(ChatMessage.id))
        .filter(ChatMessage.conversation_id.in_(ids), *_unread_filter(user_id))
        .group_by(ChatMessage.conversation_id)
        .all()
    )
    unread_by_conversation = {conversation_id: int(count) for conversation_id, count in unread_rows}

    summaries: list[ConversationSummary] = []
    for conversation in visible:
        last_message = (
            db.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .first()
        )
        summaries.append(
            ConversationSummary(
                conversation=conversation,
                other_user=db.get(Profile, conversation.other_participant(user_id)),
                last_message=last_message,
                unread_count=unread_by_conversation.get(conversation.id, 0),
            )
        )
    return summaries
