"""Driving routes via the public OSRM server (no API key).

Public API:
  - routes: fetch_route (multi-stop path), fetch_driving_leg,
    fetch_driving_legs (origin to many, deduped and paced)
  - trip: fetch_optimized_trip (OSRM chooses the stop order)
"""

from hotspot_planner.datasources.routing.client import OSRM_ROUTE_API, OSRM_TRIP_API, ROUTE_TTL
from hotspot_planner.datasources.routing.routes import (
    fetch_driving_leg,
    fetch_driving_legs,
    fetch_route,
)
from hotspot_planner.datasources.routing.trip import fetch_optimized_trip

__all__ = [
    "OSRM_ROUTE_API",
    "OSRM_TRIP_API",
    "ROUTE_TTL",
    "fetch_driving_leg",
    "fetch_driving_legs",
    "fetch_optimized_trip",
    "fetch_route",
]
