"""Block-list guard.

Edges are stored per direction, but every check is symmetric: if either user
blocked the other, neither sees nor messages the other.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reef_connect.core.errors import AlreadyBlocked, InvalidOperation, NotFound
from reef_connect.models import BlockedUser, Profile

logger = logging.getLogger(__name__)

__all__ = [
    "is_blocked",
    "blocked_counterparts",
    "block",
    "unblock",
    "list_blocked",
]


def is_blocked(db: Session, user_a: str, user_b: str) -> bool:
    """Return True if an edge exists in either direction between the users."""
    edge = (
        db.query(BlockedUser.id)
        .filter(
            or_(
                and_(BlockedUser.blocker_id == user_a, BlockedUser.blocked_id == user_b),
                and_(BlockedUser.blocker_id == user_b, BlockedUser.blocked_id == user_a),
            )
        )
        .first()
    )
    return edge is not None


def blocked_counterparts(db: Session, user_id: str) -> set[str]:
    """Return every user who blocked, or was blocked by, ``user_id``."""
    rows = (
        db.query(BlockedUser.blocker_id, BlockedUser.blocked_id)
        .filter(or_(BlockedUser.blocker_id == user_id, BlockedUser.blocked_id == user_id))
        .all()
    )
    others = {blocker for blocker, _ in rows} | {blocked for _, blocked in rows}
    others.discard(user_id)
    return others


def _find_edge(db: Session, blocker_id: str, blocked_id: str) -> BlockedUser | None:
    return (
        db.query(BlockedUser)
        .filter(BlockedUser.blocker_id == blocker_id, BlockedUser.blocked_id == blocked_id)
        .first()
    )


def block(db: Session, blocker_id: str, blocked_id: str) -> BlockedUser:
    """Create a block edge from ``blocker_id`` to ``blocked_id``."""
    if blocker_id == blocked_id:
        raise InvalidOperation("Cannot block yourself")

    if db.get(Profile, blocked_id) is None:
        raise NotFound("User not found")

    if _find_edge(db, blocker_id, blocked_id) is not None:
        raise AlreadyBlocked()

    try:
        with db.begin_nested():
            edge = BlockedUser(blocker_id=blocker_id, blocked_id=blocked_id)
            db.add(edge)
        db.commit()
    except IntegrityError as exc:
        raise AlreadyBlocked() from exc

    db.refresh(edge)
    logger.info("User %s blocked %s", blocker_id, blocked_id)
    return edge


def unblock(db: Session, blocker_id: str, blocked_id: str) -> None:
    """Remove the edge if it exists; removing a missing edge succeeds."""
    deleted = (
        db.query(BlockedUser)
        .filter(BlockedUser.blocker_id == blocker_id, BlockedUser.blocked_id == blocked_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("User %s unblocked %s", blocker_id, blocked_id)


def list_blocked(db: Session, blocker_id: str) -> Sequence[BlockedUser]:
    """Return edges created by ``blocker_id``, newest first."""
    return (
        db.query(BlockedUser)
        .filter(BlockedUser.blocker_id == blocker_id)
        .order_by(BlockedUser.created_at.desc(), BlockedUser.id.desc())
        .all()
    )
