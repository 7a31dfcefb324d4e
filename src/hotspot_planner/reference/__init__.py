"""Static reference data for hotspot searches.

Reference data that doesn't change with API calls: search limits, WMO
weather code tables, birding-score lookups.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/pure lookups
2. Re-export from this ``__init__.py``
"""

from hotspot_planner.reference.search import ADDRESS_UNAVAILABLE as ADDRESS_UNAVAILABLE
from hotspot_planner.reference.search import DEFAULT_DAYS_BACK as DEFAULT_DAYS_BACK
from hotspot_planner.reference.search import EARTH_RADIUS_KM as EARTH_RADIUS_KM
from hotspot_planner.reference.search import MAX_DAYS_BACK as MAX_DAYS_BACK
from hotspot_planner.reference.search import MAX_SEARCH_RADIUS_KM as MAX_SEARCH_RADIUS_KM
from hotspot_planner.reference.weather_codes import BIRDING_SCORES as BIRDING_SCORES
from hotspot_planner.reference.weather_codes import birding_score as birding_score
from hotspot_planner.reference.weather_codes import (
    wmo_code_to_conditions as wmo_code_to_conditions,
)
