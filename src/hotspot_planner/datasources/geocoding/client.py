"""Geocoding API constants.

- Reverse geocoding: LocationIQ (API key required), https://docs.locationiq.com/
- Forward geocoding: OSM Nominatim (no key, 1 req/s policy),
  https://nominatim.org/release-docs/latest/api/Search/
"""

from datetime import timedelta

LOCATIONIQ_API = "https://us1.locationiq.com/v1"
NOMINATIM_API = "https://nominatim.openstreetmap.org"

REVERSE_GEOCODE_TTL = timedelta(hours=6)
