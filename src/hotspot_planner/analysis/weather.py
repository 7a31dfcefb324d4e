"""Birding-conditions scoring and multi-location weather summaries."""

from __future__ import annotations

from collections.abc import Iterable

from hotspot_planner.errors import AggregateEmptyError
from hotspot_planner.reference.weather_codes import (
    MAX_BIRDING_SCORE,
    MIN_BIRDING_SCORE,
    birding_score,
)
from hotspot_planner.schemas import BirdingRating, WeatherConditions, WeatherSummary

# Rating thresholds on the 0-100 scale
EXCELLENT_THRESHOLD = 80
GOOD_THRESHOLD = 60
FAIR_THRESHOLD = 40


def score(weather_code: int) -> int:
    """Birding score for a WMO code, 1 (heavy weather) to 5 (clear). Unknown codes are 3."""
    return birding_score(weather_code)


def to_percent(mean_score: float) -> float:
    """Map a mean 1-5 score onto 0-100."""
    span = MAX_BIRDING_SCORE - MIN_BIRDING_SCORE
    return (mean_score - MIN_BIRDING_SCORE) / span * 100


def rate(percent: float) -> BirdingRating:
    if percent >= EXCELLENT_THRESHOLD:
        return BirdingRating.EXCELLENT
    if percent >= GOOD_THRESHOLD:
        return BirdingRating.GOOD
    if percent >= FAIR_THRESHOLD:
        return BirdingRating.FAIR
    return BirdingRating.POOR


def summarize(conditions: Iterable[WeatherConditions | None]) -> WeatherSummary:
    """Aggregate the locations that reported; ``None`` entries are failed lookups.

    Raises:
        AggregateEmptyError: No location reported.
    """
    usable = [c for c in conditions if c is not None]
    if not usable:
        msg = "No weather data to summarize"
        raise AggregateEmptyError(msg)

    mean = sum(score(c.weather_code) for c in usable) / len(usable)
    percent = to_percent(mean)
    return WeatherSummary(
        average_score=round(percent, 1),
        average_temperature=round(sum(c.temperature_c for c in usable) / len(usable), 1),
        max_wind_speed=max(c.wind_speed for c in usable),
        max_precipitation_probability=max(c.precipitation_probability for c in usable),
        rating=rate(percent),
        location_count=len(usable),
    )
