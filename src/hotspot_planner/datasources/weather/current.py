"""Current conditions from the Open-Meteo Forecast API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from hotspot_planner.analysis.locations import dedupe, location_key
from hotspot_planner.cache import CacheStore
from hotspot_planner.datasources.weather.client import CURRENT_VARS, OPEN_METEO_API
from hotspot_planner.errors import ApiError
from hotspot_planner.pipeline.batcher import RateLimitedBatcher
from hotspot_planner.schemas import Location, WeatherConditions
from hotspot_planner.services.http import get_json


def parse_current(data: dict[str, Any]) -> WeatherConditions:
    """Normalize Open-Meteo's ``current`` block. Missing optional fields default to 0."""
    current = data.get("current")
    if not current or current.get("weather_code") is None or current.get("temperature_2m") is None:
        msg = "Open-Meteo response has no current conditions"
        raise ApiError(msg)
    return WeatherConditions(
        temperature_c=current["temperature_2m"],
        humidity=current.get("relative_humidity_2m") or 0,
        wind_speed=current.get("wind_speed_10m") or 0,
        wind_direction=current.get("wind_direction_10m") or 0,
        precipitation_probability=current.get("precipitation_probability") or 0,
        weather_code=current["weather_code"],
        is_day=bool(current.get("is_day", 1)),
    )


async def fetch_current_conditions(
    client: httpx.AsyncClient,
    location: Location,
    cache: CacheStore[WeatherConditions] | None = None,
) -> WeatherConditions:
    """
    Fetch current weather at ``location`` (metric units, local timezone).

    Args:
        client: Shared async HTTP client.
        location: Point to query.
        cache: Optional cache keyed by ``location_key``.
    """

    async def fetch() -> WeatherConditions:
        params: dict[str, str | float] = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": ",".join(CURRENT_VARS),
            "timezone": "auto",
        }
        return parse_current(await get_json(client, OPEN_METEO_API, params=params))

    if cache is None:
        return await fetch()
    return await cache.get_or_fetch(location_key(location), fetch)


async def fetch_conditions_for_locations(
    client: httpx.AsyncClient,
    locations: Sequence[Location],
    batcher: RateLimitedBatcher,
    cache: CacheStore[WeatherConditions] | None = None,
) -> list[WeatherConditions | None]:
    """Conditions for many locations, one call per distinct coordinate.

    Failed lookups are ``None`` so ``analysis.weather.summarize`` can skip them.
    """
    unique = dedupe(locations)
    progress = await batcher.run(
        unique.unique, lambda loc: fetch_current_conditions(client, loc, cache)
    )
    return unique.expand(list(progress.results))
