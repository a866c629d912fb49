"""Geo-fence and distance helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass

from reef_connect.core.constants import BVI_ANCHORAGES, DEFAULT_LOCATION, Anchorage
from reef_connect.core.settings import settings

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class FenceBounds:
    """Axis-aligned latitude/longitude rectangle."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def checkin_bounds() -> FenceBounds:
    """Return the configured check-in fence."""
    return FenceBounds(
        min_lat=settings.checkin_fence_min_lat,
        max_lat=settings.checkin_fence_max_lat,
        min_lng=settings.checkin_fence_min_lng,
        max_lng=settings.checkin_fence_max_lng,
    )


def within_fence(lat: float, lng: float, bounds: FenceBounds) -> bool:
    """Return True when ``(lat, lng)`` lies inside ``bounds``, edges included."""
    return bounds.min_lat <= lat <= bounds.max_lat and bounds.min_lng <= lng <= bounds.max_lng


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest_anchorages(
    lat: float,
    lng: float,
    count: int = 3,
    bounds: FenceBounds | None = None,
) -> list[tuple[Anchorage, float]]:
    """Return the ``count`` closest anchorages with their distance in km.

    Points outside the fence are ranked from the default location so a
    device far away still gets sensible suggestions.
    """
    fence = bounds or checkin_bounds()
    origin_lat, origin_lng = (lat, lng) if within_fence(lat, lng, fence) else DEFAULT_LOCATION
    ranked = sorted(
        ((a, haversine_km(origin_lat, origin_lng, a.lat, a.lng)) for a in BVI_ANCHORAGES),
        key=lambda pair: pair[1],
    )
    return ranked[: max(count, 0)]
