"""Forward and reverse geocoding.

Public API:
  - forward: geocode_address (Nominatim, no key)
  - reverse: reverse_geocode (LocationIQ, cached), batch_reverse_geocode,
    format_address
"""

from hotspot_planner.datasources.geocoding.client import (
    LOCATIONIQ_API,
    NOMINATIM_API,
    REVERSE_GEOCODE_TTL,
)
from hotspot_planner.datasources.geocoding.forward import GeocodeResult, geocode_address
from hotspot_planner.datasources.geocoding.reverse import (
    batch_reverse_geocode,
    fetch_address,
    format_address,
    reverse_geocode,
)

__all__ = [
    "LOCATIONIQ_API",
    "NOMINATIM_API",
    "REVERSE_GEOCODE_TTL",
    "GeocodeResult",
    "batch_reverse_geocode",
    "fetch_address",
    "format_address",
    "geocode_address",
    "reverse_geocode",
]
