"""Check-in related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel


class CheckinCreate(CamelModel):
    """Schema for checking in at an anchorage."""

    anchorage_id: str = Field(..., description="Identifier from the anchorage catalogue")
    # strict: numeric strings are rejected, JSON integers still pass
    gps_lat: float = Field(..., strict=True, description="Device latitude")
    gps_lng: float = Field(..., strict=True, description="Device longitude")


class CheckinVerify(CamelModel):
    """Schema for a verification ping."""

    gps_lat: float = Field(..., strict=True)
    gps_lng: float = Field(..., strict=True)


class CheckinResponse(CamelModel):
    """Check-in information returned by the API."""

    id: int
    user_id: str
    anchorage_id: str
    location_name: str
    gps_lat: float
    gps_lng: float
    actual_gps_lat: float
    actual_gps_lng: float
    is_active: bool
    checked_in_at: datetime
    expires_at: datetime
    last_verified_at: datetime


class AnchorageSuggestion(CamelModel):
    """Nearby anchorage offered when checking in."""

    id: str
    name: str
    lat: float
    lng: float
    distance_km: float
