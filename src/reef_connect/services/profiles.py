"""CRUD-style helpers for managing profiles."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reef_connect.core.errors import ValidationError
from reef_connect.models import Profile
from reef_connect.schemas.identity import CallerIdentity

logger = logging.getLogger(__name__)

__all__ = [
    "get_profile",
    "get_or_create_profile",
    "update_profile",
    "public_profile",
]

UPDATABLE_FIELDS = ("display_name", "vessel_name", "home_port", "bio", "avatar_url", "show_on_map")
DISPLAY_NAME_MIN = 2
DISPLAY_NAME_MAX = 50


def _default_display_name(identity: CallerIdentity) -> str:
    name = identity.user_metadata.get("display_name")
    if isinstance(name, str) and name.strip():
        return name.strip()[:DISPLAY_NAME_MAX]
    if identity.email:
        return identity.email.split("@")[0][:DISPLAY_NAME_MAX]
    return "User"


def get_profile(db: Session, user_id: str) -> Profile | None:
    """Return a single profile by primary key."""
    return db.get(Profile, user_id)


def get_or_create_profile(db: Session, identity: CallerIdentity) -> Profile:
    """Return the caller's profile, creating it on first sight."""
    profile = get_profile(db, identity.user_id)
    if profile is not None:
        return profile

    try:
        with db.begin_nested():
            profile = Profile(id=identity.user_id, display_name=_default_display_name(identity))
            db.add(profile)
        db.commit()
    except IntegrityError:
        profile = get_profile(db, identity.user_id)
        if profile is None:
            raise
        logger.debug("Profile %s created concurrently; reusing it", profile.id)
        return profile

    db.refresh(profile)
    return profile


def update_profile(db: Session, profile: Profile, changes: dict[str, Any]) -> Profile:
    """Apply a partial update restricted to user-editable fields."""
    update_data = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if not update_data:
        raise ValidationError("No valid fields to update")

    if "display_name" in update_data:
        name = str(update_data["display_name"] or "").strip()
        if not DISPLAY_NAME_MIN <= len(name) <= DISPLAY_NAME_MAX:
            raise ValidationError(
                f"Display name must be between {DISPLAY_NAME_MIN} and {DISPLAY_NAME_MAX} characters"
            )
        update_data["display_name"] = name

    if "show_on_map" in update_data and update_data["show_on_map"] is None:
        raise ValidationError("show_on_map must be true or false")

    for key, value in update_data.items():
        setattr(profile, key, value)

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def public_profile(profile: Profile | None) -> dict[str, Any] | None:
    """Return the subset of a profile other users may see."""
    if profile is None:
        return None
    return {
        "id": profile.id,
        "displayName": profile.display_name,
        "vesselName": profile.vessel_name,
        "avatarUrl": profile.avatar_url,
    }
