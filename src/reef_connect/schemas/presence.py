"""Presence map schemas."""

from datetime import datetime

from .common import CamelModel


class PresenceEntry(CamelModel):
    """A user visible on the map."""

    id: str
    name: str | None
    avatar_url: str | None
    boat_name: str | None
    home_port: str | None
    latitude: float
    longitude: float
    last_seen: datetime | None
    is_online: bool
    is_current_user: bool
