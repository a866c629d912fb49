"""Profile Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel


class ProfileUpdate(CamelModel):
    """Partial profile update; only fields present in the body are applied."""

    display_name: str | None = None
    vessel_name: str | None = Field(default=None, max_length=100)
    home_port: str | None = Field(default=None, max_length=100)
    bio: str | None = None
    avatar_url: str | None = None
    show_on_map: bool | None = None


class ProfileResponse(CamelModel):
    """The caller's own profile."""

    id: str
    display_name: str | None
    avatar_url: str | None
    vessel_name: str | None
    home_port: str | None
    bio: str | None
    latitude: float | None
    longitude: float | None
    show_on_map: bool
    is_verified: bool
    last_seen: datetime | None


class LocationUpdate(CamelModel):
    """Heartbeat with the device position."""

    latitude: float
    longitude: float
