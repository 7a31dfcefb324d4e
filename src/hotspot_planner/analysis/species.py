"""Species lists, taxonomy lookup, and per-location sightings of one species."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from hotspot_planner.schemas import (
    LifeList,
    Observation,
    Species,
    SpeciesSighting,
    SpeciesSummary,
)

MIN_QUERY_LENGTH = 2


def summarize_species(
    observations: Iterable[Observation],
    notable_codes: frozenset[str] | set[str] = frozenset(),
    life_list: LifeList | None = None,
) -> list[SpeciesSummary]:
    """One row per species: highest count and most recent sighting.

    A missing count (``X`` on the checklist) counts as one bird. A species is
    a lifer when a non-empty ``life_list`` does not contain it. Rows sort as
    notable lifers, notable, lifers, then the rest, alphabetically by common
    name within each group.
    """
    seen_before = life_list if life_list is not None and not life_list.is_empty else None
    by_code: dict[str, dict[str, object]] = {}
    for obs in observations:
        count = obs.count or 1
        row = by_code.get(obs.species_code)
        if row is None:
            by_code[obs.species_code] = {
                "species_code": obs.species_code,
                "common_name": obs.common_name,
                "scientific_name": obs.scientific_name,
                "count": count,
                "last_seen": obs.date,
                "is_notable": obs.is_notable or obs.species_code in notable_codes,
                "is_lifer": seen_before is not None
                and not seen_before.has_seen(obs.species_code, obs.common_name),
            }
            continue
        row["count"] = max(row["count"], count)  # type: ignore[type-var]
        if obs.date > row["last_seen"]:  # type: ignore[operator]
            row["last_seen"] = obs.date
        if obs.is_notable:
            row["is_notable"] = True

    summaries = [SpeciesSummary.model_validate(row) for row in by_code.values()]
    return sorted(
        summaries,
        key=lambda s: (-(2 * s.is_notable + s.is_lifer), s.common_name.lower()),
    )


def has_notable(
    observations: Iterable[Observation],
    notable_codes: frozenset[str] | set[str] = frozenset(),
) -> bool:
    """True if any observation is flagged notable or is a notable species."""
    return any(o.is_notable or o.species_code in notable_codes for o in observations)


def distinct_species_count(observations: Iterable[Observation]) -> int:
    return len({o.species_code for o in observations})


# =============================================================================
# Taxonomy lookup
# =============================================================================


def find_species(taxonomy: Iterable[Species], species_code: str) -> Species | None:
    return next((s for s in taxonomy if s.species_code == species_code), None)


def search_species(taxonomy: Sequence[Species], query: str, limit: int = 10) -> list[Species]:
    """
    Species whose name matches ``query``, case-insensitively.

    Common-name prefix matches come first, then any species whose common or
    scientific name contains the query, each group in taxonomic order. Only
    true species are considered (no hybrids, spuhs, or slashes). Queries
    shorter than two characters match nothing.
    """
    needle = query.strip().lower()
    if len(needle) < MIN_QUERY_LENGTH:
        return []

    candidates = [s for s in taxonomy if s.category == "species"]
    prefixed = [s for s in candidates if s.common_name.lower().startswith(needle)]
    seen = {s.species_code for s in prefixed}
    contained = [
        s
        for s in candidates
        if s.species_code not in seen
        and needle in f"{s.common_name} {s.scientific_name}".lower()
    ]
    return [*prefixed, *contained][:limit]


# =============================================================================
# Species search
# =============================================================================


def group_sightings(observations: Iterable[Observation]) -> list[SpeciesSighting]:
    """Collapse one species' observations to one row per location, newest first."""
    by_location: dict[str, list[Observation]] = {}
    for obs in observations:
        by_location.setdefault(obs.location_id, []).append(obs)

    sightings = [
        SpeciesSighting(
            location_id=location_id,
            name=group[0].location_name or location_id,
            location=group[0].location,
            is_hotspot=not group[0].is_private,
            last_seen=max(o.date for o in group),
            observation_count=len(group),
            highest_count=max(o.count or 1 for o in group),
            observations=tuple(group),
        )
        for location_id, group in by_location.items()
    ]
    return sorted(sightings, key=lambda s: s.last_seen, reverse=True)
