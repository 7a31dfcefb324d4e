"""eBird API 2.0 client constants and the authenticated GET helper.

API docs: https://documenter.getpostman.com/view/664302/S1ENwy59

Every request carries the ``X-eBirdApiToken`` header. Coordinates are sent
with two decimals, the precision eBird's geo endpoints document.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from hotspot_planner.reference.search import MAX_DAYS_BACK, MAX_SEARCH_RADIUS_KM, MIN_DAYS_BACK
from hotspot_planner.services.http import get_json

EBIRD_API = "https://api.ebird.org/v2"
TOKEN_HEADER = "X-eBirdApiToken"


def clamp_radius(radius_km: float) -> float:
    return min(radius_km, MAX_SEARCH_RADIUS_KM)


def clamp_days_back(days_back: int) -> int:
    return min(max(days_back, MIN_DAYS_BACK), MAX_DAYS_BACK)


def geo_params(lat: float, lng: float, radius_km: float, days_back: int) -> dict[str, Any]:
    """Query params shared by every ``/geo`` endpoint."""
    return {
        "lat": f"{lat:.2f}",
        "lng": f"{lng:.2f}",
        "dist": clamp_radius(radius_km),
        "back": clamp_days_back(days_back),
    }


async def ebird_get(
    client: httpx.AsyncClient,
    path: str,
    api_key: str,
    params: Mapping[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """GET an eBird endpoint; a ``null`` body is treated as an empty list."""
    data = await get_json(
        client, f"{EBIRD_API}{path}", params=params, headers={TOKEN_HEADER: api_key}
    )
    return data or []
