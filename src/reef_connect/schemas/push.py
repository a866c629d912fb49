"""Push notification schemas."""

from typing import Any

from pydantic import Field

from .common import CamelModel


class PushSubscriptionCreate(CamelModel):
    """Browser ``PushSubscription.toJSON()`` payload."""

    subscription: dict[str, Any]


class PushSendRequest(CamelModel):
    """Request to notify a user on all registered endpoints."""

    recipient_user_id: str = Field(..., min_length=1)
    title: str | None = None
    body: str | None = None
    url: str | None = None
    tag: str | None = None


class DeliveryReport(CamelModel):
    """Outcome of a notification fan-out."""

    sent: int = 0
    failed: int = 0
