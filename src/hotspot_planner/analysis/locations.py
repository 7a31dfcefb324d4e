"""Canonical location keys and coordinate deduplication.

Two coordinates are "the same place" when they agree to six decimal places
(about 11 cm). Keys are used for cache lookups and for collapsing duplicate
hotspots before any network call is made.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from hotspot_planner.schemas import Location

T = TypeVar("T")

KEY_PRECISION = 6


def _fmt(value: float) -> str:
    text = f"{value:.{KEY_PRECISION}f}"
    # -0.000000 and 0.000000 are one place
    return text[1:] if text.startswith("-") and float(text) == 0 else text


def location_key(location: Location) -> str:
    """Return the canonical ``"lat,lng"`` key for ``location``.

    >>> location_key(Location(latitude=40.7128, longitude=-74.006))
    '40.712800,-74.006000'
    """
    return f"{_fmt(location.latitude)},{_fmt(location.longitude)}"


@dataclass(frozen=True)
class DedupeResult:
    """Unique locations plus the mapping from each input back to them.

    ``index_of[i]`` is the position in ``unique`` of input ``i``.
    """

    unique: tuple[Location, ...]
    index_of: tuple[int, ...]

    def expand(self, values: Sequence[T]) -> list[T]:
        """Fan per-unique values back out to input order."""
        if len(values) != len(self.unique):
            msg = f"Expected {len(self.unique)} values, got {len(values)}"
            raise ValueError(msg)
        return [values[i] for i in self.index_of]

    @property
    def duplicate_count(self) -> int:
        return len(self.index_of) - len(self.unique)


def dedupe(locations: Iterable[Location]) -> DedupeResult:
    """Collapse locations that share a key, keeping first occurrences in order."""
    unique: list[Location] = []
    seen: dict[str, int] = {}
    index_of: list[int] = []
    for loc in locations:
        key = location_key(loc)
        if key not in seen:
            seen[key] = len(unique)
            unique.append(loc)
        index_of.append(seen[key])
    return DedupeResult(unique=tuple(unique), index_of=tuple(index_of))
