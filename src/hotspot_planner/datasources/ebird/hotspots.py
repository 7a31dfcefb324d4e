"""Hotspot discovery around a point (``/ref/hotspot/geo``)."""

from __future__ import annotations

from typing import Any

import httpx

from hotspot_planner.analysis.distance import haversine
from hotspot_planner.datasources.ebird.client import ebird_get, geo_params
from hotspot_planner.schemas import Hotspot, Location


def parse_hotspot(raw: dict[str, Any], origin: Location) -> Hotspot:
    """Normalize one eBird hotspot record, measuring distance from ``origin``."""
    location = Location(latitude=raw["lat"], longitude=raw["lng"])
    subnational = tuple(
        code for code in (raw.get("subnational1Code"), raw.get("subnational2Code")) if code
    )
    return Hotspot(
        id=raw["locId"],
        name=raw["locName"],
        location=location,
        country_code=raw.get("countryCode"),
        subnational_codes=subnational,
        total_species_all_time=raw.get("numSpeciesAllTime"),
        origin_distance_km=round(haversine(origin, location), 3),
    )


async def fetch_nearby_hotspots(
    client: httpx.AsyncClient,
    api_key: str,
    origin: Location,
    radius_km: float = 50.0,
    days_back: int = 30,
) -> list[Hotspot]:
    """
    Fetch hotspots with recent activity within ``radius_km`` of ``origin``.

    Args:
        client: Shared async HTTP client.
        api_key: eBird API token.
        origin: Search center.
        radius_km: Search radius (eBird caps this at 50 km).
        days_back: Only hotspots visited in the last N days (1-30).

    Returns:
        Hotspots in API order, each with ``origin_distance_km`` set.
    """
    params = geo_params(origin.latitude, origin.longitude, radius_km, days_back)
    params["fmt"] = "json"
    records = await ebird_get(client, "/ref/hotspot/geo", api_key, params)
    return [parse_hotspot(r, origin) for r in records]
