"""
Prefect flow for one hotspot search.

Discovers hotspots near a point, streams enrichment snapshots (printing
progress as they arrive), sorts the finished list, and saves it under
``live/searches/``.

Run locally:
    python -m hotspot_planner.flows.search

Run with Prefect dashboard:
    prefect server start &
    python -m hotspot_planner.flows.search
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from prefect import flow, task

from hotspot_planner.analysis.distance import filter_near_route
from hotspot_planner.analysis.life_list import parse_life_list_csv
from hotspot_planner.analysis.locations import location_key
from hotspot_planner.analysis.ranking import sort_hotspots
from hotspot_planner.analysis.species import summarize_species
from hotspot_planner.analysis.weather import summarize
from hotspot_planner.config import get_settings
from hotspot_planner.datasources.ebird import fetch_notable_nearby, notable_codes
from hotspot_planner.datasources.geocoding import geocode_address
from hotspot_planner.errors import AggregateEmptyError, HotspotPlannerError
from hotspot_planner.flows.taxonomy import load_taxonomy
from hotspot_planner.pipeline.enrichment import Caches, EnrichmentPipeline, create_pipeline
from hotspot_planner.reference.search import ADDRESS_UNAVAILABLE
from hotspot_planner.reference.weather_codes import c_to_f, wind_direction_to_compass
from hotspot_planner.schemas import (
    Hotspot,
    LifeList,
    Location,
    SearchParams,
    Snapshot,
    SortBy,
    WeatherSummary,
)
from hotspot_planner.services.http import create_client
from hotspot_planner.store import DataStore

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

# Shared across searches in one process
caches = Caches.from_settings(get_settings())

SEARCHES_DIR = Path("live/searches")
SEARCH_TTL = timedelta(hours=1)
DEFAULT_DETOUR_KM = 5.0
TOP_N = 5


def search_path(params: SearchParams) -> Path:
    """Store path for a search, e.g. ``live/searches/45.500000_-122.600000_50km.json``."""
    key = location_key(params.origin).replace(",", "_")
    return SEARCHES_DIR / f"{key}_{params.radius_km:g}km.json"


async def collect(pipeline: EnrichmentPipeline, params: SearchParams) -> Snapshot:
    """Drain the pipeline, printing each snapshot, and return the last one."""
    final: Snapshot | None = None
    async for snapshot in pipeline.run(params):
        print(
            f"[{snapshot.phase}] {snapshot.processed}/{snapshot.total} processed, "
            f"{snapshot.enriched_count} enriched, {len(snapshot.failures)} failures"
        )
        final = snapshot
    assert final is not None
    return final


@task(name="fetch-notable-species", retries=1, retry_delay_seconds=5)
async def fetch_notable_species(params: SearchParams) -> frozenset[str]:
    """Species codes flagged notable near the search origin.

    A failure here only costs the notable flags, so it returns an empty set.
    """
    settings = get_settings()
    if settings.ebird_api_key is None:
        return frozenset()
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        try:
            notable = await fetch_notable_nearby(
                client,
                settings.ebird_api_key.get_secret_value(),
                params.origin,
                params.radius_km,
                params.days_back,
            )
        except HotspotPlannerError as exc:
            print(f"Notable species unavailable: {exc}")
            return frozenset()
    return notable_codes(notable)


@task(name="enrich-hotspots")
async def enrich_hotspots(
    params: SearchParams,
    notable: frozenset[str],
    include_address: bool = False,
    include_route: bool = False,
    include_weather: bool = False,
) -> Snapshot:
    """Run the enrichment pipeline to completion."""
    settings = get_settings()
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        pipeline = create_pipeline(
            client,
            settings,
            caches,
            notable_codes=notable,
            include_address=include_address,
            include_route=include_route,
            include_weather=include_weather,
        )
        return await collect(pipeline, params)


@task(name="geocode-origin", retries=1, retry_delay_seconds=2)
async def locate(query: str) -> Location:
    """Resolve a place name to the search origin."""
    settings = get_settings()
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        result = await geocode_address(client, query)
    print(f"Resolved {query!r} to {result.display_name}")
    return result.location


def load_life_list(path: Path) -> LifeList:
    """Read an eBird CSV export, matching names against the stored taxonomy."""
    life_list = parse_life_list_csv(path.read_text(encoding="utf-8-sig"), load_taxonomy())
    print(f"Loaded {len(life_list.names)} species from life list {path}")
    return life_list


def describe(
    hotspot: Hotspot,
    notable: frozenset[str] = frozenset(),
    life_list: LifeList | None = None,
    include_address: bool = False,
) -> str:
    """One printable line per finished hotspot.

    With ``include_address`` a hotspot whose lookup failed shows
    ``ADDRESS_UNAVAILABLE`` in place of the street address.
    """
    parts = [f"{hotspot.name} ({hotspot.origin_distance_km:.1f} km)"]
    if hotspot.recent_species_count is not None:
        parts.append(f"{hotspot.recent_species_count} species")
        rows = summarize_species(hotspot.observations, notable, life_list)
        highlights = [s.common_name for s in rows if s.is_notable]
        if highlights:
            parts.append("notable: " + ", ".join(highlights[:3]))
        lifers = sum(1 for s in rows if s.is_lifer)
        if lifers:
            parts.append(f"possible lifers: {lifers}")
    if hotspot.driving_duration_s is not None:
        parts.append(f"{hotspot.driving_duration_s / 60:.0f} min drive")
    if hotspot.weather is not None:
        w = hotspot.weather
        parts.append(
            f"{w.description}, {w.temperature_c:.0f}°C/{c_to_f(w.temperature_c):.0f}°F, "
            f"wind {w.wind_speed:.0f} km/h {wind_direction_to_compass(w.wind_direction)}"
        )
    if hotspot.address:
        parts.append(hotspot.address)
    elif include_address:
        parts.append(ADDRESS_UNAVAILABLE)
    return " | ".join(parts)


def weather_summary(hotspots: list[Hotspot]) -> WeatherSummary | None:
    try:
        return summarize(h.weather for h in hotspots)
    except AggregateEmptyError:
        return None


@task(name="save-search")
def save_search(
    params: SearchParams,
    hotspots: list[Hotspot],
    snapshot: Snapshot,
    summary: WeatherSummary | None = None,
) -> Path:
    """Save a finished search via store."""
    data = {
        "params": params.model_dump(mode="json"),
        "hotspots": [h.model_dump(mode="json") for h in hotspots],
        "failures": [f.model_dump(mode="json") for f in snapshot.failures],
        "weather_summary": summary.model_dump(mode="json") if summary else None,
    }
    return store.write(
        search_path(params),
        data,
        source="ebird.org",
        valid_until=datetime.now(UTC) + SEARCH_TTL,
        origin=location_key(params.origin),
        sort_by=str(params.sort_by),
    )


@flow(name="search-hotspots", log_prints=True)
async def search_hotspots(
    lat: float = 45.5,
    lon: float = -122.6,
    near: str | None = None,
    radius_km: float | None = None,
    max_results: int | None = None,
    sort_by: str = "distance",
    days_back: int | None = None,
    include_address: bool = False,
    include_route: bool = False,
    include_weather: bool = False,
    route_to: tuple[float, float] | None = None,
    max_detour_km: float = DEFAULT_DETOUR_KM,
    life_list_path: str | None = None,
) -> dict[str, Any]:
    """
    Search, enrich, sort, and save hotspots near ``(lat, lon)``.

    ``near`` is a place name that replaces ``lat``/``lon`` after geocoding.

    When ``route_to`` is given, only hotspots within ``max_detour_km`` of the
    straight line from the origin to that point are kept.

    ``life_list_path`` points at an eBird CSV export; species missing from
    it are counted as possible lifers.
    """
    settings = get_settings()
    life_list = load_life_list(Path(life_list_path)) if life_list_path else None
    origin = await locate(near) if near else Location(latitude=lat, longitude=lon)
    params = SearchParams(
        origin=origin,
        radius_km=radius_km or settings.search_radius_km,
        max_results=max_results or settings.max_results,
        sort_by=SortBy(sort_by),
        days_back=days_back or settings.days_back,
    )

    print(f"Searching {params.radius_km:g} km around {location_key(origin)}...")
    notable = await fetch_notable_species(params)
    snapshot = await enrich_hotspots(
        params,
        notable,
        include_address=include_address,
        include_route=include_route,
        include_weather=include_weather,
    )

    hotspots = sort_hotspots(snapshot.hotspots, params.sort_by)
    if route_to is not None:
        end = Location(latitude=route_to[0], longitude=route_to[1])
        hotspots = filter_near_route(params.origin, end, hotspots, max_detour_km)
        print(f"{len(hotspots)} hotspots within {max_detour_km:g} km of the route")

    summary = weather_summary(hotspots) if include_weather else None
    if summary is not None:
        print(f"Birding conditions: {summary.rating} ({summary.average_score:.0f}/100)")

    for rank, hotspot in enumerate(hotspots[:TOP_N], start=1):
        print(f"{rank}. {describe(hotspot, notable, life_list, include_address)}")

    path = save_search(params, hotspots, snapshot, summary)
    print(f"Saved {len(hotspots)} hotspots to {path}")
    pruned = store.prune(SEARCHES_DIR)
    if pruned:
        print(f"Removed {len(pruned)} expired searches")

    return {
        "hotspots": len(hotspots),
        "enriched": sum(1 for h in hotspots if h.is_enriched),
        "failures": len(snapshot.failures),
        "path": str(path),
        "origin": [origin.latitude, origin.longitude],
        "rating": str(summary.rating) if summary else None,
    }


if __name__ == "__main__":
    result = asyncio.run(search_hotspots())
    print(f"Flow complete: {result}")
