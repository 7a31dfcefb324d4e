"""OSRM public demo server constants.

API docs: http://project-osrm.org/docs/v5.24.0/api/

OSRM takes coordinates as ``lng,lat`` pairs joined by ``;``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from hotspot_planner.errors import ApiError
from hotspot_planner.schemas import Location

OSRM_ROUTE_API = "https://router.project-osrm.org/route/v1/driving"
OSRM_TRIP_API = "https://router.project-osrm.org/trip/v1/driving"

ROUTE_TTL = timedelta(hours=24)


def coordinates_path(points: Sequence[Location]) -> str:
    return ";".join(p.as_lnglat() for p in points)


def check_ok(data: dict[str, Any], collection: str) -> list[dict[str, Any]]:
    """Return ``data[collection]`` if OSRM answered ``code == "Ok"`` with results."""
    code = data.get("code")
    items = data.get(collection) or []
    if code != "Ok" or not items:
        msg = f"OSRM returned {code or 'no code'} with {len(items)} {collection}"
        raise ApiError(msg)
    return items


def geojson_to_latlng(geometry: dict[str, Any] | None) -> tuple[tuple[float, float], ...]:
    """GeoJSON LineString ``[lng, lat]`` coordinates to ``(lat, lng)`` pairs."""
    if not geometry:
        return ()
    return tuple((lat, lng) for lng, lat in geometry.get("coordinates", []))
