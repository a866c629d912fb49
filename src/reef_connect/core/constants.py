"""Static reference data for the BVI check-in system."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class Anchorage:
    """A named anchorage users can check in at."""

    id: str
    name: str
    lat: float
    lng: float


# Suggestions for devices outside the fence are ranked from The Bight.
DEFAULT_LOCATION: Final[tuple[float, float]] = (18.3186, -64.6189)

BVI_ANCHORAGES: Final[tuple[Anchorage, ...]] = (
    Anchorage("bight-norman", "The Bight, Norman Island", 18.3186, -64.6189),
    Anchorage("great-harbour-jvd", "Great Harbour, Jost Van Dyke", 18.4367, -64.7528),
    Anchorage("cane-garden-bay", "Cane Garden Bay, Tortola", 18.4289, -64.6481),
    Anchorage("the-baths", "The Baths, Virgin Gorda", 18.4283, -64.4472),
    Anchorage("anegada-setting-point", "Setting Point, Anegada", 18.7267, -64.3333),
    Anchorage("sopers-hole", "Soper's Hole, Tortola", 18.3897, -64.7039),
    Anchorage("road-town", "Road Town, Tortola", 18.4267, -64.6200),
    Anchorage("trellis-bay", "Trellis Bay, Beef Island", 18.4478, -64.5317),
    Anchorage("cooper-island", "Cooper Island", 18.3894, -64.5119),
    Anchorage("salt-island", "Salt Island", 18.3722, -64.5256),
    Anchorage("peter-island", "Peter Island", 18.3511, -64.5789),
    Anchorage("white-bay-jvd", "White Bay, Jost Van Dyke", 18.4397, -64.7614),
    Anchorage("diamond-cay-jvd", "Diamond Cay, Jost Van Dyke", 18.4528, -64.7711),
    Anchorage("sandy-spit", "Sandy Spit", 18.4489, -64.7517),
    Anchorage("north-sound-vg", "North Sound, Virgin Gorda", 18.5072, -64.3833),
    Anchorage("spanish-town-vg", "Spanish Town, Virgin Gorda", 18.4456, -64.4319),
    Anchorage("leverick-bay", "Leverick Bay, Virgin Gorda", 18.4922, -64.3928),
    Anchorage("bitter-end", "Bitter End, Virgin Gorda", 18.5139, -64.3556),
    Anchorage("marina-cay", "Marina Cay", 18.4539, -64.5158),
    Anchorage("manchioneel-bay", "Manchioneel Bay, Cooper Island", 18.3861, -64.5097),
    Anchorage("deadmans-bay-pi", "Deadman's Bay, Peter Island", 18.3572, -64.5708),
    Anchorage("little-harbour-pi", "Little Harbour, Peter Island", 18.3519, -64.5986),
    Anchorage("brandywine-bay", "Brandywine Bay, Tortola", 18.4067, -64.5719),
    Anchorage("nanny-cay", "Nanny Cay, Tortola", 18.3928, -64.6339),
    Anchorage("west-end-tortola", "West End, Tortola", 18.3867, -64.7014),
    Anchorage("little-jost", "Little Jost Van Dyke", 18.4631, -64.7567),
    Anchorage("guana-island", "Guana Island", 18.4828, -64.5736),
    Anchorage("scrub-island", "Scrub Island", 18.4622, -64.5028),
)

ANCHORAGES_BY_ID: Final[dict[str, Anchorage]] = {a.id: a for a in BVI_ANCHORAGES}

REPORT_REASONS: Final[tuple[str, ...]] = ("harassment", "spam", "inappropriate", "safety", "other")
