"""Block list endpoints for the connect feature."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from reef_connect.db.time import as_utc
from reef_connect.models import BlockedUser
from reef_connect.schemas.blocked import BlockCreate
from reef_connect.services import blocklist
from reef_connect.services.profiles import public_profile

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/connect/blocked", tags=["blocked"])


def _serialize_block(edge: BlockedUser, include_profile: bool = True) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": edge.id,
        "blockerId": edge.blocker_id,
        "blockedId": edge.blocked_id,
        "createdAt": as_utc(edge.created_at).isoformat(),  # type: ignore[union-attr]
    }
    if include_profile:
        payload["profile"] = public_profile(edge.blocked)
    return payload


@router.get("")
async def list_blocked_users(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, Any]:
    """Users the caller has blocked."""
    edges = blocklist.list_blocked(db, current_user.id)
    return {"blockedUsers": [_serialize_block(edge) for edge in edges]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def block_user(
    payload: BlockCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Block a user; either side of a block hides the pair from each other."""
    edge = blocklist.block(db, current_user.id, payload.user_id)
    return {"block": _serialize_block(edge, include_profile=False)}


@router.delete("")
async def unblock_user(
    current_user: CurrentProfileDep,
    db: SessionDep,
    user_id: str = Query(..., alias="userId", min_length=1),
) -> dict[str, bool]:
    """Remove a block; unblocking someone who is not blocked succeeds."""
    blocklist.unblock(db, current_user.id, user_id)
    return {"success": True}
