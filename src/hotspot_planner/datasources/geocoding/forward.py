"""Free-text address to coordinates (Nominatim ``/search``)."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from hotspot_planner.datasources.geocoding.client import NOMINATIM_API
from hotspot_planner.datasources.geocoding.reverse import format_address
from hotspot_planner.errors import ApiError
from hotspot_planner.schemas import Location
from hotspot_planner.services.http import get_json


@dataclass(frozen=True)
class GeocodeResult:
    location: Location
    display_name: str
    address: str


async def geocode_address(client: httpx.AsyncClient, query: str) -> GeocodeResult:
    """Best match for ``query``. Raises ``ApiError`` when nothing matches."""
    data = await get_json(
        client,
        f"{NOMINATIM_API}/search",
        params={"q": query, "format": "json", "limit": 1, "addressdetails": 1},
    )
    if not data:
        msg = f"Could not find a location for {query!r}"
        raise ApiError(msg)

    best = data[0]
    display_name = best.get("display_name", "")
    address = format_address(best.get("address")) if best.get("address") else display_name
    return GeocodeResult(
        location=Location(latitude=float(best["lat"]), longitude=float(best["lon"])),
        display_name=display_name,
        address=address,
    )
