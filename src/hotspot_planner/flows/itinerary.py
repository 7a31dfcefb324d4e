"""
Prefect flow that turns a saved search into a day itinerary.

Reads the result ``search_hotspots`` saved for the same origin and radius,
lets OSRM order the chosen stops, and writes the plan to
``derived/itineraries/``. The saved search is used even when it has expired;
run the search again for fresh sightings.

Run locally:
    python -m hotspot_planner.flows.itinerary
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any

from prefect import flow, task

from hotspot_planner.analysis.locations import location_key
from hotspot_planner.config import get_settings
from hotspot_planner.flows.search import search_path
from hotspot_planner.pipeline.itinerary import DEFAULT_MAX_STOPS, build_itinerary
from hotspot_planner.schemas import Hotspot, Itinerary, Location, Priority, SearchParams
from hotspot_planner.services.http import create_client
from hotspot_planner.store import DataStore

store = DataStore(get_settings().data_dir)

ITINERARIES_DIR = Path("derived/itineraries")


def load_search(params: SearchParams) -> list[Hotspot]:
    """Hotspots from the saved search for ``params``.

    Raises:
        ValueError: Nothing has been saved for this origin and radius.
    """
    path = search_path(params)
    data = store.read(path)
    if data is None:
        msg = f"No saved search at {path}; run 'hotspot-planner search' first"
        raise ValueError(msg)
    return [Hotspot.model_validate(h) for h in data["hotspots"]]


@task(name="plan-route", retries=1, retry_delay_seconds=5)
async def plan_route(
    start: Location,
    hotspots: list[Hotspot],
    depart_at: datetime,
    end: Location | None,
    max_stops: int,
    priority: Priority,
) -> Itinerary:
    settings = get_settings()
    async with create_client(settings.http_timeout_s, settings.http_retries) as client:
        return await build_itinerary(
            client, start, hotspots, depart_at, end=end, max_stops=max_stops, priority=priority
        )


@task(name="save-itinerary")
def save_itinerary(itinerary: Itinerary) -> Path:
    """Save an itinerary via store. Derived output carries no expiry."""
    key = location_key(itinerary.start).replace(",", "_")
    return store.write(
        ITINERARIES_DIR / f"{key}.json",
        itinerary.model_dump(mode="json"),
        source="router.project-osrm.org",
        stops=len(itinerary.stops),
        round_trip=itinerary.round_trip,
    )


@flow(name="plan-itinerary", log_prints=True)
async def plan_itinerary(
    lat: float = 45.5,
    lon: float = -122.6,
    radius_km: float | None = None,
    max_stops: int = DEFAULT_MAX_STOPS,
    priority: str = "balanced",
    end: tuple[float, float] | None = None,
    depart_at: datetime | None = None,
) -> dict[str, Any]:
    """Plan a route through the best hotspots of a saved search."""
    settings = get_settings()
    start = Location(latitude=lat, longitude=lon)
    params = SearchParams(origin=start, radius_km=radius_km or settings.search_radius_km)
    hotspots = load_search(params)
    print(f"Planning up to {max_stops} stops from {len(hotspots)} saved hotspots...")

    finish = Location(latitude=end[0], longitude=end[1]) if end is not None else None
    itinerary = await plan_route(
        start,
        hotspots,
        depart_at or datetime.now().astimezone(),
        finish,
        max_stops,
        Priority(priority),
    )

    for stop in itinerary.stops:
        print(
            f"{stop.stop_number}. {stop.arrival:%H:%M}-{stop.departure:%H:%M} "
            f"{stop.hotspot.name} ({stop.visit_minutes} min)"
        )
    print(
        f"Done by {itinerary.finish:%H:%M}: {itinerary.route.distance_meters / 1000:.1f} km, "
        f"{itinerary.total_travel_minutes:.0f} min driving"
    )

    path = save_itinerary(itinerary)
    print(f"Saved itinerary to {path}")
    return {
        "stops": len(itinerary.stops),
        "round_trip": itinerary.round_trip,
        "finish": itinerary.finish.isoformat(),
        "path": str(path),
    }


if __name__ == "__main__":
    result = asyncio.run(plan_itinerary())
    print(f"Flow complete: {result}")
