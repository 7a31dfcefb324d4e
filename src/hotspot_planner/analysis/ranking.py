"""Caller-side ordering of a finished result list."""

from __future__ import annotations

from collections.abc import Iterable

from hotspot_planner.schemas import Hotspot, SortBy


def _drive_time_key(h: Hotspot) -> tuple[int, float]:
    # Routed hotspots first, then the rest by straight-line distance
    if h.driving_duration_s is not None:
        return (0, h.driving_duration_s)
    return (1, h.origin_distance_km)


def sort_hotspots(hotspots: Iterable[Hotspot], sort_by: SortBy) -> list[Hotspot]:
    """Return a new list ordered by ``sort_by``. Ties keep their input order.

    Hotspots whose species count is still unknown sort after every counted one.
    """
    items = list(hotspots)
    if sort_by is SortBy.SPECIES:
        return sorted(
            items,
            key=lambda h: -1 if h.recent_species_count is None else h.recent_species_count,
            reverse=True,
        )
    if sort_by is SortBy.DRIVE_TIME:
        return sorted(items, key=_drive_time_key)
    return sorted(items, key=lambda h: h.origin_distance_km)
