"""Stop-order optimization (OSRM ``/trip``).

OSRM solves the visiting order; ``analysis.trip_order`` turns its answer
into a reordered waypoint list and rejects answers that do not fit the
request.
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from hotspot_planner.analysis.trip_order import order_from_osrm, reorder_waypoints
from hotspot_planner.datasources.routing.client import (
    OSRM_TRIP_API,
    check_ok,
    coordinates_path,
    geojson_to_latlng,
)
from hotspot_planner.datasources.routing.routes import parse_legs
from hotspot_planner.schemas import Location, OptimizedTrip
from hotspot_planner.services.http import get_json


async def fetch_optimized_trip(
    client: httpx.AsyncClient,
    start: Location,
    waypoints: Sequence[Location],
    end: Location | None = None,
) -> OptimizedTrip:
    """
    Ask OSRM for the fastest order to visit ``waypoints``.

    Args:
        client: Shared async HTTP client.
        start: Fixed first point.
        waypoints: Stops to reorder.
        end: Fixed last point. ``None`` means a round trip back to ``start``.

    Raises:
        ApiError: OSRM could not build a trip.
        DataIntegrityError: OSRM's order does not match the request.
    """
    if not waypoints:
        msg = "An optimized trip needs at least one waypoint"
        raise ValueError(msg)

    round_trip = end is None
    points = [start, *waypoints] if round_trip else [start, *waypoints, end]
    params = {
        "roundtrip": "true" if round_trip else "false",
        "source": "first",
        "destination": "any" if round_trip else "last",
        "geometries": "geojson",
        "overview": "full",
    }
    data = await get_json(client, f"{OSRM_TRIP_API}/{coordinates_path(points)}", params=params)
    trip = check_ok(data, "trips")[0]

    sequence = order_from_osrm([wp["waypoint_index"] for wp in data.get("waypoints", [])])
    ordered = reorder_waypoints(
        list(waypoints), sequence, round_trip=round_trip, has_destination=not round_trip
    )

    visited = [points[i] for i in sequence]
    if round_trip:
        visited.append(start)

    return OptimizedTrip(
        distance_meters=trip["distance"],
        duration_seconds=trip["duration"],
        geometry=geojson_to_latlng(trip.get("geometry")),
        legs=parse_legs(trip.get("legs", []), visited),
        waypoint_order=tuple(sequence),
        waypoints=tuple(ordered),
    )
