"""Check-in endpoints for the connect feature."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from reef_connect.core.errors import ValidationError
from reef_connect.core.geo import checkin_bounds, nearest_anchorages, within_fence
from reef_connect.core.settings import settings
from reef_connect.models import Checkin
from reef_connect.schemas.checkin import (
    AnchorageSuggestion,
    CheckinCreate,
    CheckinResponse,
    CheckinVerify,
)
from reef_connect.services import checkins as checkin_service
from reef_connect.services.profiles import public_profile

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/connect/checkins", tags=["checkins"])

SUGGESTION_COUNT = 5


def serialize_checkin(checkin: Checkin | None) -> dict[str, Any] | None:
    """Serialize a Checkin into API payload form."""
    if checkin is None:
        return None
    return CheckinResponse.model_validate(checkin).model_dump(by_alias=True, mode="json")


@router.get("")
async def list_checkins(
    current_user: CurrentProfileDep,
    db: SessionDep,
    suggestions: bool = Query(False),
    lat: float | None = Query(None),
    lng: float | None = Query(None),
) -> dict[str, Any]:
    """List active check-ins for the map, or suggest anchorages near a position."""
    if suggestions:
        if lat is None or lng is None:
            raise ValidationError("lat and lng are required for suggestions")
        nearby = nearest_anchorages(lat, lng, SUGGESTION_COUNT)
        return {
            "suggestions": [
                AnchorageSuggestion(
                    id=anchorage.id,
                    name=anchorage.name,
                    lat=anchorage.lat,
                    lng=anchorage.lng,
                    distance_km=round(distance, 2),
                ).model_dump(by_alias=True)
                for anchorage, distance in nearby
            ],
            "withinFence": within_fence(lat, lng, checkin_bounds()),
            "locationRestricted": settings.location_restriction_enabled,
        }

    rows = checkin_service.list_active_checkins(db, current_user.id)
    return {
        "checkins": [
            {**serialize_checkin(checkin), "profile": public_profile(profile)}  # type: ignore[dict-item]
            for checkin, profile in rows
        ],
        "myCheckin": serialize_checkin(checkin_service.get_active_checkin(db, current_user.id)),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_checkin(
    payload: CheckinCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Check in at an anchorage."""
    checkin = checkin_service.check_in(
        db,
        current_user.id,
        payload.anchorage_id,
        payload.gps_lat,
        payload.gps_lng,
    )
    return {"checkin": serialize_checkin(checkin)}


@router.delete("")
async def check_out(current_user: CurrentProfileDep, db: SessionDep) -> dict[str, bool]:
    """End the caller's active check-in."""
    checkin_service.check_out(db, current_user.id)
    return {"success": True}


@router.post("/verify")
async def verify_checkin(
    payload: CheckinVerify,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Re-validate the caller's check-in against the device position.

    A position outside the fence ends the check-in and answers 400 with
    ``checkedOut: true``.
    """
    result = checkin_service.verify(db, current_user.id, payload.gps_lat, payload.gps_lng)
    response: dict[str, Any] = {"checkin": serialize_checkin(result.checkin)}
    if result.moved_away:
        response["movedAway"] = True
        response["distanceKm"] = result.distance_km
    return response
