"""Open-Meteo weather data source.

Fetches current conditions from Open-Meteo (free, no API key).

Public API:
  - current: fetch_current_conditions (cached), fetch_conditions_for_locations
  - client: API URL, requested variables, cache TTL
"""

from hotspot_planner.datasources.weather.client import CURRENT_VARS, OPEN_METEO_API, WEATHER_TTL
from hotspot_planner.datasources.weather.current import (
    fetch_conditions_for_locations,
    fetch_current_conditions,
    parse_current,
)

__all__ = [
    "CURRENT_VARS",
    "OPEN_METEO_API",
    "WEATHER_TTL",
    "fetch_conditions_for_locations",
    "fetch_current_conditions",
    "parse_current",
]
