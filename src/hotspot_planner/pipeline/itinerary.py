"""Build a day itinerary: pick stops, let OSRM order them, lay out times."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

import httpx

from hotspot_planner.analysis.itinerary import schedule, select_stops
from hotspot_planner.analysis.locations import location_key
from hotspot_planner.datasources.routing import fetch_optimized_trip
from hotspot_planner.schemas import Hotspot, Itinerary, Location, Priority

logger = logging.getLogger(__name__)

DEFAULT_MAX_STOPS = 5


async def build_itinerary(
    client: httpx.AsyncClient,
    start: Location,
    hotspots: Sequence[Hotspot],
    depart_at: datetime,
    *,
    end: Location | None = None,
    max_stops: int = DEFAULT_MAX_STOPS,
    priority: Priority = Priority.BALANCED,
) -> Itinerary:
    """
    Choose up to ``max_stops`` hotspots and visit them in the fastest order.

    Args:
        client: Shared async HTTP client.
        start: Where the day begins.
        hotspots: Candidates, usually a finished search result.
        depart_at: Departure time from ``start``.
        end: Where the day ends. ``None`` or the same point as ``start``
            makes a round trip.
        max_stops: Upper bound on hotspots visited.
        priority: Species richness vs. proximity when choosing stops.

    Raises:
        ValueError: No hotspots to choose from.
        ApiError: OSRM could not build the trip.
        DataIntegrityError: OSRM's stop order does not match the request.
    """
    if not hotspots:
        msg = "No hotspots available for an itinerary"
        raise ValueError(msg)

    round_trip = end is None or location_key(end) == location_key(start)
    chosen = select_stops(hotspots, start, max_stops, priority)
    logger.info("Routing %d of %d hotspots (%s)", len(chosen), len(hotspots), priority)

    trip = await fetch_optimized_trip(
        client, start, [h.location for h in chosen], None if round_trip else end
    )

    by_key = {location_key(h.location): h for h in chosen}
    ordered = [by_key[location_key(loc)] for loc in trip.waypoints]
    finish_at = end if end is not None and not round_trip else start
    return schedule(ordered, trip, start, finish_at, depart_at, round_trip)
