"""Push subscription and delivery endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from reef_connect.schemas.push import PushSendRequest, PushSubscriptionCreate
from reef_connect.services import notifications

from ..dependencies import CurrentProfileDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/push", tags=["push"])


@router.post("/subscription")
async def register_subscription(
    payload: PushSubscriptionCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, bool]:
    """Register or refresh this device's push endpoint."""
    notifications.save_subscription(db, current_user.id, payload.subscription)
    return {"success": True}


@router.delete("/subscription")
async def remove_subscription(
    current_user: CurrentProfileDep,
    db: SessionDep,
    endpoint: str | None = Query(None),
) -> dict[str, Any]:
    """Remove one endpoint, or every endpoint of the caller."""
    removed = notifications.remove_subscription(db, current_user.id, endpoint)
    return {"success": True, "removed": removed}


@router.post("/send")
def send_push(
    payload: PushSendRequest,
    current_user: CurrentProfileDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> dict[str, int]:
    """Notify a user on every registered endpoint and report the counts.

    Delivery makes blocking HTTP calls, so this handler is sync and runs in
    the threadpool rather than on the event loop.
    """
    report = dispatcher.notify(
        db,
        payload.recipient_user_id,
        title=payload.title,
        body=payload.body,
        url=payload.url,
        tag=payload.tag,
    )
    return report.model_dump()
