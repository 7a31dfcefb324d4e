"""
Domain models for hotspot planner.

Pydantic models for data from external APIs and internal processing.
These define the canonical schema - datasources normalize API responses to these.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from hotspot_planner.reference.search import MAX_DAYS_BACK, MAX_SEARCH_RADIUS_KM, MIN_DAYS_BACK
from hotspot_planner.reference.weather_codes import birding_score, wmo_code_to_conditions

# =============================================================================
# Geographic
# =============================================================================


class Location(BaseModel):
    """Geographic point. Compare for caching with ``location_key``, not ``==``."""

    model_config = {"frozen": True}

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def as_lnglat(self) -> str:
        """Return ``"lng,lat"``, the coordinate order OSRM expects."""
        return f"{self.longitude},{self.latitude}"


# =============================================================================
# Observations
# =============================================================================


class Observation(BaseModel):
    """A single eBird sighting record at a hotspot."""

    model_config = {"frozen": True}

    species_code: str
    common_name: str
    scientific_name: str
    location_id: str
    date: str = Field(..., description="eBird obsDt, e.g. '2026-05-01 07:30'")
    count: int | None = None
    is_notable: bool = False
    is_valid: bool = True
    location_name: str | None = None
    location: Location | None = None
    is_private: bool = False


class Species(BaseModel):
    """A taxonomy entry from the eBird species reference list."""

    model_config = {"frozen": True}

    species_code: str
    common_name: str
    scientific_name: str
    family_common_name: str | None = None
    family_scientific_name: str | None = None
    order: str | None = None
    category: str = "species"


class SpeciesSummary(BaseModel):
    """One row of a hotspot's species list: all sightings of a species collapsed."""

    model_config = {"frozen": True}

    species_code: str
    common_name: str
    scientific_name: str
    count: int
    last_seen: str
    is_notable: bool = False
    is_lifer: bool = False


class LifeList(BaseModel):
    """Species a birder has already seen, by eBird code and lowercase common name."""

    model_config = {"frozen": True}

    codes: frozenset[str] = frozenset()
    names: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.codes and not self.names

    def has_seen(self, species_code: str, common_name: str) -> bool:
        return species_code in self.codes or common_name.lower() in self.names


class SpeciesSighting(BaseModel):
    """Recent sightings of one species at one location."""

    model_config = {"frozen": True}

    location_id: str
    name: str
    location: Location | None = None
    is_hotspot: bool = True
    last_seen: str
    observation_count: int
    highest_count: int
    observations: tuple[Observation, ...] = ()


# =============================================================================
# Weather
# =============================================================================


class WeatherConditions(BaseModel):
    """Current conditions at a location (Open-Meteo ``current`` block)."""

    model_config = {"frozen": True}

    temperature_c: float
    humidity: float
    wind_speed: float = Field(..., description="km/h")
    wind_direction: float = 0.0
    precipitation_probability: float = 0.0
    weather_code: int
    is_day: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def birding_score(self) -> int:
        """Birding conditions score, 1 (poor) to 5 (clear)."""
        return birding_score(self.weather_code)

    @property
    def description(self) -> str:
        return wmo_code_to_conditions(self.weather_code)


class BirdingRating(StrEnum):
    """Overall birding rating buckets on the 0-100 scale."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class WeatherSummary(BaseModel):
    """Weather aggregated over every location that reported successfully."""

    model_config = {"frozen": True}

    average_score: float = Field(..., ge=0, le=100)
    average_temperature: float
    max_wind_speed: float
    max_precipitation_probability: float
    rating: BirdingRating
    location_count: int


# =============================================================================
# Routing
# =============================================================================


class RouteLeg(BaseModel):
    """Driving leg between two points."""

    model_config = {"frozen": True}

    start: Location
    end: Location
    distance_meters: float
    duration_seconds: float

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000


class Route(BaseModel):
    """A routed path through two or more points."""

    model_config = {"frozen": True}

    distance_meters: float
    duration_seconds: float
    geometry: tuple[tuple[float, float], ...] = Field(
        default=(), description="(lat, lng) pairs along the path"
    )
    legs: tuple[RouteLeg, ...] = ()


class OptimizedTrip(Route):
    """A route whose stop order was chosen by the routing service."""

    waypoint_order: tuple[int, ...] = Field(
        ..., description="Visiting sequence over request indices (origin = 0)"
    )
    waypoints: tuple[Location, ...] = Field(
        ..., description="Waypoints in visiting order, origin/destination excluded"
    )


# =============================================================================
# Hotspots
# =============================================================================


class Hotspot(BaseModel):
    """A birding hotspot plus whatever enrichment has arrived so far.

    Enrichment fields stay ``None`` until their source answers, so a partially
    enriched hotspot is distinguishable from one with genuinely zero activity.
    """

    model_config = {"frozen": True}

    id: str = Field(..., description="eBird location ID, e.g. L123456")
    name: str
    location: Location
    country_code: str | None = None
    subnational_codes: tuple[str, ...] = ()
    total_species_all_time: int | None = None
    origin_distance_km: float

    # Enrichment
    recent_species_count: int | None = None
    has_notable_species: bool | None = None
    observations: tuple[Observation, ...] = ()
    address: str | None = None
    driving_distance_km: float | None = None
    driving_duration_s: float | None = None
    weather: WeatherConditions | None = None

    def merge(self, patch: Mapping[str, Any]) -> Hotspot:
        """Return a copy with ``patch`` applied. Identity never changes."""
        if "id" in patch and patch["id"] != self.id:
            msg = f"Enrichment patch may not change hotspot id {self.id!r}"
            raise ValueError(msg)
        return self.model_copy(update=dict(patch))

    @property
    def is_enriched(self) -> bool:
        return self.recent_species_count is not None


class Priority(StrEnum):
    """What an itinerary favors when it cannot visit every hotspot."""

    BALANCED = "balanced"
    SPECIES = "species"
    DISTANCE = "distance"


class ItineraryStop(BaseModel):
    """A hotspot visit with its estimated timing."""

    model_config = {"frozen": True}

    stop_number: int
    hotspot: Hotspot
    arrival: datetime
    departure: datetime
    visit_minutes: int
    leg_in: RouteLeg | None = None


class Itinerary(BaseModel):
    """An ordered day trip through selected hotspots."""

    model_config = {"frozen": True}

    start: Location
    end: Location
    round_trip: bool
    stops: tuple[ItineraryStop, ...]
    route: Route
    finish: datetime

    @property
    def total_visit_minutes(self) -> int:
        return sum(s.visit_minutes for s in self.stops)

    @property
    def total_travel_minutes(self) -> float:
        return self.route.duration_seconds / 60


# =============================================================================
# Search
# =============================================================================


class SortBy(StrEnum):
    """Result ordering chosen by the caller after enrichment is done."""

    SPECIES = "species"
    DISTANCE = "distance"
    DRIVE_TIME = "drive_time"


class SearchParams(BaseModel):
    """Inputs for one search invocation."""

    model_config = {"frozen": True}

    origin: Location
    radius_km: float = Field(default=50.0, gt=0, le=MAX_SEARCH_RADIUS_KM)
    max_results: int = Field(default=20, ge=1)
    sort_by: SortBy = SortBy.DISTANCE
    days_back: int = Field(default=30, ge=MIN_DAYS_BACK, le=MAX_DAYS_BACK)


class Phase(StrEnum):
    """Pipeline state."""

    BASE_FETCH = "base_fetch"
    ENRICHING = "enriching"
    DONE = "done"
    FAILED = "failed"


class EnrichmentFailure(BaseModel):
    """One enrichment source that failed for one hotspot."""

    model_config = {"frozen": True}

    hotspot_id: str
    source: str
    message: str


class Snapshot(BaseModel):
    """A complete-shaped, possibly partially enriched result."""

    model_config = {"frozen": True}

    phase: Phase
    hotspots: tuple[Hotspot, ...]
    processed: int = 0
    total: int = 0
    failures: tuple[EnrichmentFailure, ...] = ()
    cancelled: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def enriched_count(self) -> int:
        return sum(1 for h in self.hotspots if h.is_enriched)
