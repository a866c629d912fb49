"""Presence map: who is visible, and who is online right now."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from reef_connect.core.errors import ValidationError
from reef_connect.core.settings import settings
from reef_connect.db.time import as_utc, utcnow
from reef_connect.models import Profile
from reef_connect.services.blocklist import blocked_counterparts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresenceEntry:
    """A profile projected onto the map for one requester."""

    profile: Profile
    is_online: bool
    is_current_user: bool


def is_online(last_seen: datetime | None, now: datetime | None = None) -> bool:
    """Return True if ``last_seen`` is within the online threshold of ``now``."""
    seen = as_utc(last_seen)
    if seen is None:
        return False
    current = now or utcnow()
    return current - seen < timedelta(seconds=settings.online_threshold_seconds)


def list_visible_users(db: Session, requester_id: str) -> list[PresenceEntry]:
    """Return every user the requester may see on the map.

    Recomputed from the store on each call; nothing is cached.
    """
    query = db.query(Profile).filter(
        Profile.show_on_map.is_(True),
        Profile.latitude.isnot(None),
        Profile.longitude.isnot(None),
        Profile.is_verified.is_(True),
    )
    hidden = blocked_counterparts(db, requester_id)
    if hidden:
        query = query.filter(Profile.id.notin_(hidden))

    now = utcnow()
    return [
        PresenceEntry(
            profile=profile,
            is_online=is_online(profile.last_seen, now),
            is_current_user=profile.id == requester_id,
        )
        for profile in query.order_by(Profile.id).all()
    ]


def update_location(db: Session, profile: Profile, latitude: float, longitude: float) -> Profile:
    """Record a heartbeat with the device position."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("Invalid coordinates")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationError("Coordinates out of range")

    profile.latitude = latitude
    profile.longitude = longitude
    profile.last_seen = utcnow()
    db.commit()
    db.refresh(profile)
    return profile


def go_offline(db: Session, profile: Profile) -> Profile:
    """Clear the stored position so the user drops off the map."""
    profile.latitude = None
    profile.longitude = None
    profile.last_seen = utcnow()
    db.commit()
    db.refresh(profile)
    logger.debug("User %s went offline", profile.id)
    return profile
