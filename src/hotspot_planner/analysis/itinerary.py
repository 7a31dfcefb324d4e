"""Stop selection and visit timing for a multi-hotspot birding day.

Pure functions only; the routing call that orders the stops lives in
``pipeline/itinerary.py``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from hotspot_planner.analysis.distance import haversine
from hotspot_planner.schemas import (
    Hotspot,
    Itinerary,
    ItineraryStop,
    Location,
    OptimizedTrip,
    Priority,
)

BASE_VISIT_MINUTES = 30

# (species weight, proximity weight)
PRIORITY_WEIGHTS: dict[Priority, tuple[float, float]] = {
    Priority.BALANCED: (0.5, 0.5),
    Priority.SPECIES: (0.8, 0.2),
    Priority.DISTANCE: (0.2, 0.8),
}


def visit_minutes(species_count: int) -> int:
    """Suggested time at a hotspot: 30 minutes plus one per 10 species."""
    return BASE_VISIT_MINUTES + math.ceil(species_count / 10)


def score_hotspot(
    species_count: int,
    distance_km: float,
    max_species: int,
    max_distance_km: float,
    priority: Priority = Priority.BALANCED,
) -> float:
    """Blend normalized species richness and proximity. Higher is better."""
    species = species_count / max_species if max_species else 0.0
    proximity = 1 - distance_km / max_distance_km if max_distance_km else 1.0
    w_species, w_proximity = PRIORITY_WEIGHTS[priority]
    return w_species * species + w_proximity * proximity


def select_stops(
    hotspots: Sequence[Hotspot],
    start: Location,
    max_stops: int,
    priority: Priority = Priority.BALANCED,
) -> list[Hotspot]:
    """Pick the best ``max_stops`` hotspots, measured from ``start``."""
    if len(hotspots) <= max_stops:
        return list(hotspots)

    distances = {h.id: haversine(start, h.location) for h in hotspots}
    counts = {h.id: h.recent_species_count or 0 for h in hotspots}
    max_species = max(counts.values())
    max_distance = max(distances.values())

    ranked = sorted(
        hotspots,
        key=lambda h: score_hotspot(
            counts[h.id], distances[h.id], max_species, max_distance, priority
        ),
        reverse=True,
    )
    return ranked[:max_stops]


def schedule(
    ordered: Sequence[Hotspot],
    trip: OptimizedTrip,
    start: Location,
    end: Location,
    depart_at: datetime,
    round_trip: bool,
) -> Itinerary:
    """Lay out arrival and departure times along an ordered trip.

    ``trip.legs[i]`` is the leg that arrives at ``ordered[i]``; the leg after
    the last stop returns to ``end``.
    """
    clock = depart_at
    stops: list[ItineraryStop] = []
    for i, hotspot in enumerate(ordered):
        leg = trip.legs[i] if i < len(trip.legs) else None
        if leg is not None:
            clock += timedelta(seconds=leg.duration_seconds)
        minutes = visit_minutes(hotspot.recent_species_count or 0)
        arrival = clock
        clock += timedelta(minutes=minutes)
        stops.append(
            ItineraryStop(
                stop_number=i + 1,
                hotspot=hotspot,
                arrival=arrival,
                departure=clock,
                visit_minutes=minutes,
                leg_in=leg,
            )
        )

    for leg in trip.legs[len(ordered) :]:
        clock += timedelta(seconds=leg.duration_seconds)

    return Itinerary(
        start=start,
        end=end,
        round_trip=round_trip,
        stops=tuple(stops),
        route=trip,
        finish=clock,
    )
