"""Presence map and location heartbeat endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from reef_connect.schemas.presence import PresenceEntry
from reef_connect.schemas.profile import LocationUpdate
from reef_connect.services import presence as presence_service

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/connect", tags=["presence"])


@router.get("/presence")
async def list_visible_users(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, Any]:
    """Users visible on the map with their online status."""
    entries = presence_service.list_visible_users(db, current_user.id)
    return {
        "users": [
            PresenceEntry(
                id=entry.profile.id,
                name=entry.profile.display_name,
                avatar_url=entry.profile.avatar_url,
                boat_name=entry.profile.vessel_name,
                home_port=entry.profile.home_port,
                latitude=entry.profile.latitude,
                longitude=entry.profile.longitude,
                last_seen=entry.profile.last_seen,
                is_online=entry.is_online,
                is_current_user=entry.is_current_user,
            ).model_dump(by_alias=True, mode="json")
            for entry in entries
        ]
    }


@router.post("/location")
async def update_location(
    payload: LocationUpdate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, bool]:
    """Heartbeat: store the device position and bump ``last_seen``."""
    presence_service.update_location(db, current_user, payload.latitude, payload.longitude)
    return {"success": True}


@router.delete("/location")
async def go_offline(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, bool]:
    """Clear the stored position so the caller leaves the map."""
    presence_service.go_offline(db, current_user)
    return {"success": True}
