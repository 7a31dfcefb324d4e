"""eBird API 2.0 data source.

Requires an API token (https://ebird.org/api/keygen).

Public API:
  - hotspots: fetch_nearby_hotspots (discovery around a point)
  - observations: fetch_recent_observations (per hotspot), fetch_notable_nearby,
    fetch_species_observations_nearby, fetch_nearest_species_observations
  - taxonomy: fetch_taxonomy, get_taxonomy (cached, 7-day TTL)
  - client: API URL, token header, parameter clamping
"""

from hotspot_planner.datasources.ebird.client import EBIRD_API, TOKEN_HEADER
from hotspot_planner.datasources.ebird.hotspots import fetch_nearby_hotspots, parse_hotspot
from hotspot_planner.datasources.ebird.observations import (
    fetch_nearest_species_observations,
    fetch_notable_nearby,
    fetch_recent_observations,
    fetch_species_observations_nearby,
    notable_codes,
    parse_observation,
)
from hotspot_planner.datasources.ebird.taxonomy import fetch_taxonomy, get_taxonomy

__all__ = [
    "EBIRD_API",
    "TOKEN_HEADER",
    "fetch_nearest_species_observations",
    "fetch_nearby_hotspots",
    "fetch_notable_nearby",
    "fetch_recent_observations",
    "fetch_species_observations_nearby",
    "fetch_taxonomy",
    "get_taxonomy",
    "notable_codes",
    "parse_hotspot",
    "parse_observation",
]
