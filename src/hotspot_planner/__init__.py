"""Hotspot Planner - birding hotspot discovery with progressive enrichment.

Architecture::

    datasources/   External APIs (eBird, LocationIQ/Nominatim, OSRM, Open-Meteo)
    cache.py       In-memory TTL cache with stale fallback and call suppression
    pipeline/      Paced batching + progressive enrichment snapshots
    analysis/      Pure logic (dedup keys, distances, trip order, weather, ranking)
    store.py       Tiered on-disk cache with TTL (reference → live → derived)
    flows/         Prefect orchestration (search, taxonomy refresh, itinerary, species)
    services/      Shared utilities (async HTTP client with retry)

Data flow: datasources → pipeline (cache, batcher) → snapshots → analysis → store

Extension points (see each package's docstring for step-by-step guides):
  - New data source:   datasources/__init__.py
  - New analysis:      analysis/__init__.py
"""

__version__ = "0.1.0"
__author__ = "Michael Howden"

from hotspot_planner.config import Settings

__all__ = ["Settings", "__version__"]
