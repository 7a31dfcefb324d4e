"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, request helpers
    └── {feature}.py      # Async fetch functions (one per endpoint/concept)

Sources:
  - ebird/      Hotspots, recent/notable observations, taxonomy (API key)
  - geocoding/  Reverse (LocationIQ, API key) and forward (Nominatim)
  - routing/    Driving legs, routes, optimized trips (OSRM)
  - weather/    Current conditions (Open-Meteo)

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.
   See ``weather/`` for a minimal example, ``ebird/`` for a richer one.

2. Write async fetch functions that take the shared client and return
   schema models::

       from hotspot_planner.services.http import get_json

       async def fetch_something(client: httpx.AsyncClient, location: Location) -> Something:
           data = await get_json(client, API_URL, params={...})
           return parse_something(data)

   Per-location lookups that repeat across searches take an optional
   ``CacheStore`` and key it with ``analysis.locations.location_key``.

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Wire into the pipeline (see ``pipeline/enrichment.py``):
   - Add an enricher dataclass with a ``source`` name and an async
     ``__call__(hotspot, params)`` returning the fields to merge
   - Register it in ``create_pipeline``

5. Add tests in ``tests/test_{name}.py``.
"""
