"""Profile endpoints for the connect feature."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from reef_connect.schemas.profile import ProfileResponse, ProfileUpdate
from reef_connect.services import profiles as profile_service

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/connect/profile", tags=["profile"])


@router.get("")
async def get_my_profile(current_user: CurrentProfileDep) -> dict[str, Any]:
    """Return the caller's profile, created on first access."""
    return {"profile": ProfileResponse.model_validate(current_user).model_dump(by_alias=True, mode="json")}


@router.patch("")
async def update_my_profile(
    payload: ProfileUpdate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Update editable profile fields; only fields present in the body change."""
    profile = profile_service.update_profile(db, current_user, payload.model_dump(exclude_unset=True))
    return {"profile": ProfileResponse.model_validate(profile).model_dump(by_alias=True, mode="json")}
