"""
Prefect flow for finding where one species has been seen recently.

The query is resolved against the stored eBird taxonomy (refreshed first when
no snapshot exists), sightings are grouped per location, and the result is
saved under ``live/species/``. If nothing was seen inside the radius the
nearest sightings are used instead.

Run locally:
    python -m hotspot_planner.flows.species
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from prefect import flow, task

from hotspot_planner.analysis.distance import haversine
from hotspot_planner.analysis.locations import location_key
from hotspot_planner.analysis.species import find_species, group_sightings, search_species
from hotspot_planner.config import get_settings
from hotspot_planner.datasources.ebird import (
    fetch_nearest_species_observations,
    fetch_species_observations_nearby,
)
from hotspot_planner.flows import taxonomy
from hotspot_planner.schemas import Location, Observation, Species, SpeciesSighting
from hotspot_planner.services.http import create_client
from hotspot_planner.store import DataStore

store = DataStore(get_settings().data_dir)

SPECIES_DIR = Path("live/species")
SPECIES_TTL = timedelta(hours=1)
TOP_N = 10


def resolve_species(query: str, species: list[Species]) -> Species:
    """Species for an eBird code or the best name match.

    Raises:
        ValueError: Nothing in the taxonomy matches ``query``.
    """
    exact = find_species(species, query.strip())
    if exact is not None:
        return exact
    matches = search_species(species, query, limit=5)
    if not matches:
        msg = f"No species matches {query!r}"
        raise ValueError(msg)
    if len(matches) > 1:
        others = ", ".join(m.common_name for m in matches[1:])
        print(f"Using {matches[0].common_name} for {query!r} (also: {others})")
    return matches[0]


async def load_species_list() -> list[Species]:
    """The stored taxonomy, fetching it first if there is none."""
    species = taxonomy.load_taxonomy()
    if not species:
        await taxonomy.refresh_taxonomy()
        species = taxonomy.load_taxonomy()
    return species


@task(name="fetch-species-sightings", retries=1, retry_delay_seconds=5)
async def fetch_species_sightings(
    species_code: str,
    origin: Location,
    radius_km: float,
    days_back: int,
    nearest: bool = True,
) -> tuple[list[Observation], bool]:
    """Observations of ``species_code`` and whether they came from the nearest lookup."""
    settings = get_settings()
    if settings.ebird_api_key is None:
        msg = "HOTSPOT_PLANNER_EBIRD_API_KEY is not set"
        raise ValueError(msg)
    api_key = settings.ebird_api_key.get_secret_value()
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        observations = await fetch_species_observations_nearby(
            client, api_key, species_code, origin, radius_km, days_back
        )
        if observations or not nearest:
            return observations, False
        print(f"No sightings within {radius_km:g} km, looking further afield...")
        observations = await fetch_nearest_species_observations(
            client, api_key, species_code, origin, days_back
        )
    return observations, True


def species_path(species_code: str, origin: Location) -> Path:
    key = location_key(origin).replace(",", "_")
    return SPECIES_DIR / f"{species_code}_{key}.json"


@task(name="save-species-search")
def save_species_search(
    species: Species,
    origin: Location,
    radius_km: float,
    sightings: list[SpeciesSighting],
) -> Path:
    """Save grouped sightings via store."""
    data = {
        "species": species.model_dump(mode="json"),
        "radius_km": radius_km,
        "sightings": [s.model_dump(mode="json") for s in sightings],
    }
    return store.write(
        species_path(species.species_code, origin),
        data,
        source="ebird.org",
        valid_until=datetime.now(UTC) + SPECIES_TTL,
        origin=location_key(origin),
    )


@flow(name="find-species", log_prints=True)
async def find_species_hotspots(
    query: str,
    lat: float = 45.5,
    lon: float = -122.6,
    radius_km: float | None = None,
    days_back: int | None = None,
    nearest: bool = True,
) -> dict[str, Any]:
    """Find locations near ``(lat, lon)`` where a species was seen recently."""
    settings = get_settings()
    origin = Location(latitude=lat, longitude=lon)
    radius = radius_km or settings.search_radius_km

    species = resolve_species(query, await load_species_list())
    print(f"Searching for {species.common_name} ({species.species_code})...")

    observations, from_nearest = await fetch_species_sightings(
        species.species_code, origin, radius, days_back or settings.days_back, nearest
    )
    sightings = group_sightings(observations)

    for sighting in sightings[:TOP_N]:
        distance = (
            f", {haversine(origin, sighting.location):.1f} km" if sighting.location else ""
        )
        print(
            f"{sighting.last_seen}  {sighting.name}{distance} "
            f"(max {sighting.highest_count}, {sighting.observation_count} reports)"
        )

    path = save_species_search(species, origin, radius, sightings)
    print(f"Saved {len(sightings)} locations to {path}")
    return {
        "species_code": species.species_code,
        "common_name": species.common_name,
        "locations": len(sightings),
        "nearest": from_nearest,
        "path": str(path),
    }


if __name__ == "__main__":
    result = asyncio.run(find_species_hotspots("Great Blue Heron"))
    print(f"Flow complete: {result}")
