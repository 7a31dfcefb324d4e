"""Recent sightings: per hotspot, notable nearby, and one species nearby."""

from __future__ import annotations

from typing import Any

import httpx

from hotspot_planner.datasources.ebird.client import clamp_days_back, ebird_get, geo_params
from hotspot_planner.schemas import Location, Observation


def parse_observation(raw: dict[str, Any], *, notable: bool = False) -> Observation:
    return Observation(
        species_code=raw["speciesCode"],
        common_name=raw.get("comName", raw["speciesCode"]),
        scientific_name=raw.get("sciName", ""),
        location_id=raw.get("locId", ""),
        date=raw.get("obsDt", ""),
        count=raw.get("howMany"),
        is_notable=notable,
        is_valid=raw.get("obsValid", True),
        location_name=raw.get("locName"),
        location=(
            Location(latitude=raw["lat"], longitude=raw["lng"])
            if "lat" in raw and "lng" in raw
            else None
        ),
        is_private=raw.get("locationPrivate", False),
    )


async def fetch_recent_observations(
    client: httpx.AsyncClient,
    api_key: str,
    location_id: str,
    days_back: int = 30,
) -> list[Observation]:
    """Recent observations at one hotspot (``/data/obs/{locId}/recent``)."""
    records = await ebird_get(
        client,
        f"/data/obs/{location_id}/recent",
        api_key,
        {"back": clamp_days_back(days_back)},
    )
    return [parse_observation(r) for r in records]


async def fetch_notable_nearby(
    client: httpx.AsyncClient,
    api_key: str,
    origin: Location,
    radius_km: float = 50.0,
    days_back: int = 30,
) -> list[Observation]:
    """Rare or unusual sightings near ``origin``; every result is notable."""
    params = geo_params(origin.latitude, origin.longitude, radius_km, days_back)
    records = await ebird_get(client, "/data/obs/geo/recent/notable", api_key, params)
    return [parse_observation(r, notable=True) for r in records]


async def fetch_species_observations_nearby(
    client: httpx.AsyncClient,
    api_key: str,
    species_code: str,
    origin: Location,
    radius_km: float = 50.0,
    days_back: int = 30,
) -> list[Observation]:
    """Recent sightings of one species within ``radius_km`` of ``origin``."""
    params = geo_params(origin.latitude, origin.longitude, radius_km, days_back)
    records = await ebird_get(client, f"/data/obs/geo/recent/{species_code}", api_key, params)
    return [parse_observation(r) for r in records]


async def fetch_nearest_species_observations(
    client: httpx.AsyncClient,
    api_key: str,
    species_code: str,
    origin: Location,
    days_back: int = 30,
    max_results: int = 20,
) -> list[Observation]:
    """Closest recent sightings of one species, however far away."""
    params = {
        "lat": f"{origin.latitude:.2f}",
        "lng": f"{origin.longitude:.2f}",
        "back": clamp_days_back(days_back),
        "maxResults": max_results,
    }
    records = await ebird_get(
        client, f"/data/nearest/geo/recent/{species_code}", api_key, params
    )
    return [parse_observation(r) for r in records]


def notable_codes(observations: list[Observation]) -> frozenset[str]:
    return frozenset(o.species_code for o in observations)
