"""Search limits and display fallbacks shared across data sources."""

# eBird caps geo queries at 50 km and 30 days of history.
MAX_SEARCH_RADIUS_KM: float = 50.0
MAX_DAYS_BACK: int = 30
MIN_DAYS_BACK: int = 1

DEFAULT_SEARCH_RADIUS_KM: float = 50.0
DEFAULT_DAYS_BACK: int = 30
DEFAULT_MAX_RESULTS: int = 20

# Shown in place of an address when reverse geocoding has nothing to offer.
ADDRESS_UNAVAILABLE: str = "Address unavailable"

# Mean Earth radius used by the great-circle distance helpers.
EARTH_RADIUS_KM: float = 6371.0
