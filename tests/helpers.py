# tests/helpers.py
"""Factories and fakes shared by the test suites."""
from __future__ import annotations

from datetime import timedelta
from itertools import count
from typing import Any

from jose import jwt
from sqlalchemy.orm import Session

from reef_connect.core.constants import ANCHORAGES_BY_ID
from reef_connect.core.settings import settings
from reef_connect.db.time import utcnow
from reef_connect.models import Checkin, Profile, PushSubscription
from reef_connect.services.notifications import PushDeliveryError

TEST_ANCHORAGE = ANCHORAGES_BY_ID["bight-norman"]

_USER_COUNTER = count(1)


class FakePushTransport:
    """Records deliveries; endpoints listed in ``failures`` answer with that status."""

    def __init__(self) -> None:
        self.sent: list[tuple[dict[str, Any], str]] = []
        self.failures: dict[str, int | None] = {}

    def send(self, subscription: dict[str, Any], payload: str) -> None:
        endpoint = subscription["endpoint"]
        if endpoint in self.failures:
            raise PushDeliveryError("push service rejected the message", self.failures[endpoint])
        self.sent.append((subscription, payload))


def mint_token(user_id: str, **claims: Any) -> str:
    """Return an identity-provider style HS256 token for ``user_id``."""
    payload: dict[str, Any] = {
        "sub": user_id,
        "aud": settings.auth_jwt_audience,
        "exp": utcnow() + timedelta(hours=1),
        "role": "authenticated",
    }
    payload.update(claims)
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def auth_headers(user_id: str, **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id, **claims)}"}


def make_profile(db: Session, display_name: str | None = None, **fields: Any) -> Profile:
    """Persist a profile with a fresh id."""
    number = next(_USER_COUNTER)
    profile = Profile(
        id=fields.pop("id", f"user-{number:04d}"),
        display_name=display_name or f"Sailor {number}",
        **fields,
    )
    db.add(profile)
    db.flush()
    db.refresh(profile)
    return profile


def make_checkin(db: Session, user_id: str, hours_left: float = 4, is_active: bool = True) -> Checkin:
    """Persist a check-in at the test anchorage expiring ``hours_left`` from now."""
    now = utcnow()
    checkin = Checkin(
        user_id=user_id,
        anchorage_id=TEST_ANCHORAGE.id,
        location_name=TEST_ANCHORAGE.name,
        gps_lat=TEST_ANCHORAGE.lat,
        gps_lng=TEST_ANCHORAGE.lng,
        actual_gps_lat=TEST_ANCHORAGE.lat,
        actual_gps_lng=TEST_ANCHORAGE.lng,
        is_active=is_active,
        checked_in_at=now - timedelta(hours=1),
        expires_at=now + timedelta(hours=hours_left),
        last_verified_at=now - timedelta(hours=1),
    )
    db.add(checkin)
    db.flush()
    db.refresh(checkin)
    return checkin


def make_subscription(db: Session, user_id: str, endpoint: str) -> PushSubscription:
    subscription = PushSubscription(
        user_id=user_id,
        endpoint=endpoint,
        subscription={"endpoint": endpoint, "keys": {"p256dh": "BNc-p256dh-key", "auth": "auth-secret"}},
    )
    db.add(subscription)
    db.flush()
    db.refresh(subscription)
    return subscription
