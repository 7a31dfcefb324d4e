"""
Prefect flow for the eBird species taxonomy snapshot.

The snapshot lives in ``reference/taxonomy.json`` with a 7-day TTL. A failed
refresh keeps serving the expired file rather than losing it.

Run locally:
    python -m hotspot_planner.flows.taxonomy
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path

from prefect import flow, task

from hotspot_planner.cache import CacheStore
from hotspot_planner.config import get_settings
from hotspot_planner.datasources.ebird import get_taxonomy
from hotspot_planner.errors import HotspotPlannerError
from hotspot_planner.schemas import Species
from hotspot_planner.services.http import create_client
from hotspot_planner.store import DataStore

store = DataStore(get_settings().data_dir)

TAXONOMY_PATH = Path("reference/taxonomy.json")

taxonomy_cache: CacheStore[list[Species]] = CacheStore(
    timedelta(seconds=get_settings().taxonomy_ttl_s), name="taxonomy"
)


@task(name="fetch-taxonomy", retries=2, retry_delay_seconds=5)
async def fetch_taxonomy(force: bool = False) -> list[Species]:
    """Fetch the taxonomy through the in-process cache."""
    settings = get_settings()
    if settings.ebird_api_key is None:
        msg = "HOTSPOT_PLANNER_EBIRD_API_KEY is not set"
        raise ValueError(msg)
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        return await get_taxonomy(
            client,
            settings.ebird_api_key.get_secret_value(),
            taxonomy_cache,
            force_refresh=force,
        )


@task(name="save-taxonomy")
def save_taxonomy(species: list[Species]) -> Path:
    """Save taxonomy snapshot via store."""
    ttl = timedelta(seconds=get_settings().taxonomy_ttl_s)
    return store.write_models(TAXONOMY_PATH, species, source="ebird.org", ttl=ttl)


def load_taxonomy() -> list[Species]:
    """Species from the stored snapshot, fresh or not. Empty if never fetched."""
    return store.read_models(TAXONOMY_PATH, Species)


@flow(name="refresh-taxonomy", log_prints=True)
async def refresh_taxonomy(force: bool = False) -> int:
    """
    Refresh the taxonomy snapshot if it has expired (or ``force`` is set).

    Returns the number of species in the snapshot now on disk.
    """
    if not force and store.is_fresh(TAXONOMY_PATH):
        print("Taxonomy is fresh, skipping fetch.")
        return len(load_taxonomy())

    print("Fetching eBird taxonomy...")
    try:
        species = await fetch_taxonomy(force)
    except HotspotPlannerError as exc:
        stale = load_taxonomy()
        if not stale:
            raise
        print(f"Taxonomy refresh failed ({exc}), keeping {len(stale)} species from last snapshot")
        return len(stale)

    path = save_taxonomy(species)
    print(f"Saved {len(species)} species to {path}")
    return len(species)


if __name__ == "__main__":
    count = asyncio.run(refresh_taxonomy())
    print(f"Flow complete: {count} species")
