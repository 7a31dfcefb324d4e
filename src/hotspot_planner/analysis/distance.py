"""Great-circle distance and route-corridor filtering."""

from __future__ import annotations

import math
from collections.abc import Iterable

from hotspot_planner.reference.search import EARTH_RADIUS_KM
from hotspot_planner.schemas import Hotspot, Location


def haversine(a: Location, b: Location, radius_km: float = EARTH_RADIUS_KM) -> float:
    """Great-circle distance between two points in kilometers."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * radius_km * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def within_corridor(
    start: Location,
    end: Location,
    candidate: Location,
    max_detour_km: float,
) -> bool:
    """True if visiting ``candidate`` adds at most ``2 * max_detour_km``.

    Uses straight-line distances, so the corridor is an ellipse with
    ``start`` and ``end`` as foci.
    """
    direct = haversine(start, end)
    via = haversine(start, candidate) + haversine(candidate, end)
    return via <= direct + 2 * max_detour_km


def filter_near_route(
    start: Location,
    end: Location,
    hotspots: Iterable[Hotspot],
    max_detour_km: float,
) -> list[Hotspot]:
    """Keep the hotspots inside the start-end corridor, in input order."""
    return [h for h in hotspots if within_corridor(start, end, h.location, max_detour_km)]
