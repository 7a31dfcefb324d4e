"""Pure domain logic over hotspot data.

Nothing in this package performs I/O. Functions take schema models and return
schema models (or plain values), so the pipeline, flows, and CLI can all
share them and tests need no mocks.

Modules:
  - locations: canonical location keys + order-preserving deduplication
  - distance: haversine distance + route-corridor filter
  - trip_order: apply an externally optimized visiting order to waypoints
  - weather: birding score per WMO code + multi-location summary
  - species: species lists with lifer flags, taxonomy search, per-location sightings
  - life_list: read an eBird CSV export into a life list
  - ranking: caller-side sort of a finished result list
  - itinerary: stop selection and visit timing

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with a pure function::

       from hotspot_planner.schemas import Hotspot

       def something(hotspots: list[Hotspot]) -> SomeResult:
           ...

2. Rules:
   - Import ``schemas``/``reference``/``errors`` only (never datasources).
   - No I/O, no HTTP, no Prefect decorators.

3. Re-export in ``__init__.py`` and add tests in ``tests/test_{name}.py``.
"""

from hotspot_planner.analysis.distance import filter_near_route, haversine, within_corridor
from hotspot_planner.analysis.itinerary import schedule, score_hotspot, select_stops, visit_minutes
from hotspot_planner.analysis.life_list import parse_life_list_csv
from hotspot_planner.analysis.locations import DedupeResult, dedupe, location_key
from hotspot_planner.analysis.ranking import sort_hotspots
from hotspot_planner.analysis.species import (
    find_species,
    group_sightings,
    search_species,
    summarize_species,
)
from hotspot_planner.analysis.trip_order import order_from_osrm, reorder_waypoints
from hotspot_planner.analysis.weather import score, summarize

__all__ = [
    "DedupeResult",
    "dedupe",
    "filter_near_route",
    "find_species",
    "group_sightings",
    "haversine",
    "location_key",
    "order_from_osrm",
    "parse_life_list_csv",
    "reorder_waypoints",
    "schedule",
    "score",
    "score_hotspot",
    "search_species",
    "select_stops",
    "sort_hotspots",
    "summarize",
    "summarize_species",
    "visit_minutes",
    "within_corridor",
]
