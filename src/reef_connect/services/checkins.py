"""Check-in lifecycle: NoCheckin -> Active -> {Expired, OutOfBounds}.

Expiry is lazy. A row whose ``expires_at`` has passed is simply filtered out
by every read; nothing ever flips ``is_active`` for expired rows.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from reef_connect.core.constants import ANCHORAGES_BY_ID
from reef_connect.core.errors import CheckedOut, Forbidden, NotFound, ValidationError
from reef_connect.core.geo import checkin_bounds, haversine_km, within_fence
from reef_connect.core.settings import settings
from reef_connect.db.time import utcnow
from reef_connect.models import Checkin, Profile
from reef_connect.services.blocklist import blocked_counterparts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a verification ping that kept the check-in active."""

    checkin: Checkin
    moved_away: bool = False
    distance_km: float | None = None


def _require_coordinates(lat: object, lng: object) -> tuple[float, float]:
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise ValidationError("GPS coordinates are required")
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        raise ValidationError("GPS coordinates are required")
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError("GPS coordinates must be finite numbers")
    return float(lat), float(lng)


def _fence_applies(lat: float, lng: float) -> bool:
    """True when restrictions are on and the point is outside the fence."""
    return settings.location_restriction_enabled and not within_fence(lat, lng, checkin_bounds())


def active_checkin_query(db: Session, user_id: str | None = None):
    """Query for check-ins that are active and not yet expired."""
    query = db.query(Checkin).filter(
        Checkin.is_active.is_(True),
        Checkin.expires_at > utcnow(),
    )
    if user_id is not None:
        query = query.filter(Checkin.user_id == user_id)
    return query


def get_active_checkin(db: Session, user_id: str) -> Checkin | None:
    """Return the user's authoritative active check-in, if any.

    Should more than one row qualify, the most recently created wins.
    """
    return (
        active_checkin_query(db, user_id)
        .order_by(Checkin.checked_in_at.desc(), Checkin.id.desc())
        .first()
    )


def has_active_checkin(db: Session, user_id: str) -> bool:
    return get_active_checkin(db, user_id) is not None


def _deactivate_all(db: Session, user_id: str) -> int:
    return (
        db.query(Checkin)
        .filter(Checkin.user_id == user_id, Checkin.is_active.is_(True))
        .update({Checkin.is_active: False}, synchronize_session="fetch")
    )


def check_in(db: Session, user_id: str, anchorage_id: str, gps_lat: object, gps_lng: object) -> Checkin:
    """Start a check-in at an anchorage, replacing any current one."""
    lat, lng = _require_coordinates(gps_lat, gps_lng)

    anchorage = ANCHORAGES_BY_ID.get(anchorage_id)
    if anchorage is None:
        raise ValidationError("Invalid anchorage selected")

    if _fence_applies(lat, lng):
        raise Forbidden("Check-in is only available within BVI waters")

    now = utcnow()
    _deactivate_all(db, user_id)
    checkin = Checkin(
        user_id=user_id,
        anchorage_id=anchorage.id,
        location_name=anchorage.name,
        gps_lat=anchorage.lat,
        gps_lng=anchorage.lng,
        actual_gps_lat=lat,
        actual_gps_lng=lng,
        is_active=True,
        checked_in_at=now,
        expires_at=now + timedelta(hours=settings.checkin_expiry_hours),
        last_verified_at=now,
    )
    db.add(checkin)
    db.commit()
    db.refresh(checkin)
    logger.info("User %s checked in at %s", user_id, anchorage.id)
    return checkin


def verify(db: Session, user_id: str, gps_lat: object, gps_lng: object) -> VerificationResult:
    """Re-validate the active check-in against a fresh device position.

    Raises:
        ValidationError: coordinates are missing or not numbers.
        NotFound: the user has no active check-in.
        CheckedOut: the position is outside the fence; the check-in was ended.
    """
    lat, lng = _require_coordinates(gps_lat, gps_lng)

    checkin = get_active_checkin(db, user_id)
    if checkin is None:
        raise NotFound("No active check-in")

    if _fence_applies(lat, lng):
        checkin.is_active = False
        checkin.actual_gps_lat = lat
        checkin.actual_gps_lng = lng
        db.commit()
        logger.info("Auto checkout for user %s: position outside fence", user_id)
        raise CheckedOut()

    checkin.actual_gps_lat = lat
    checkin.actual_gps_lng = lng
    checkin.last_verified_at = utcnow()
    db.commit()
    db.refresh(checkin)

    distance = haversine_km(checkin.gps_lat, checkin.gps_lng, lat, lng)
    if distance > settings.auto_checkout_distance_km:
        return VerificationResult(checkin=checkin, moved_away=True, distance_km=round(distance, 1))
    return VerificationResult(checkin=checkin)


def check_out(db: Session, user_id: str) -> None:
    """End every active check-in for the user."""
    deactivated = _deactivate_all(db, user_id)
    db.commit()
    if deactivated:
        logger.info("User %s checked out", user_id)


def list_active_checkins(db: Session, viewer_id: str | None) -> Sequence[tuple[Checkin, Profile]]:
    """Return visible active check-ins with their owner's profile."""
    query = (
        active_checkin_query(db)
        .join(Profile, Profile.id == Checkin.user_id)
        .filter(Profile.show_on_map.is_(True))
        .add_entity(Profile)
    )
    if viewer_id is not None:
        hidden = blocked_counterparts(db, viewer_id)
        if hidden:
            query = query.filter(Checkin.user_id.notin_(hidden))
    return query.order_by(Checkin.checked_in_at.desc()).all()
