"""Apply an externally optimized visiting order to our waypoint list.

The routing service is given ``[origin, w1..wn]`` for a round trip, or
``[origin, w1..wn, destination]`` for an open trip with a fixed end. It
answers with a visiting sequence over those request indices. Only the
waypoints (``1..n``) are reordered; origin and destination stay where they are.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from hotspot_planner.errors import DataIntegrityError

T = TypeVar("T")


def order_from_osrm(waypoint_indices: Sequence[int]) -> list[int]:
    """Convert OSRM ``waypoints[i].waypoint_index`` into a visiting sequence.

    OSRM reports, for each *input* coordinate, its position in the trip. The
    visiting sequence is the inverse permutation of that list.
    """
    n = len(waypoint_indices)
    if sorted(waypoint_indices) != list(range(n)):
        msg = f"waypoint_index values are not a permutation of 0..{n - 1}: {list(waypoint_indices)}"
        raise DataIntegrityError(msg)
    sequence = [0] * n
    for input_index, trip_position in enumerate(waypoint_indices):
        sequence[trip_position] = input_index
    return sequence


def reorder_waypoints(
    waypoints: Sequence[T],
    order: Sequence[int],
    *,
    round_trip: bool,
    has_destination: bool = False,
) -> list[T]:
    """Return ``waypoints`` in the visiting order described by ``order``.

    Raises:
        DataIntegrityError: ``order`` does not start at the origin, ends on
            the wrong index, or does not name every waypoint exactly once.

    >>> reorder_waypoints(["A", "B", "C"], [0, 3, 1, 2, 0], round_trip=True)
    ['C', 'A', 'B']
    """
    n = len(waypoints)
    seq = list(order)
    if not seq or seq[0] != 0:
        msg = f"Trip order must start at the origin (0): {seq}"
        raise DataIntegrityError(msg)
    seq = seq[1:]

    if round_trip:
        if seq and seq[-1] == 0:
            seq = seq[:-1]
    elif has_destination:
        if not seq or seq[-1] != n + 1:
            msg = f"Open trip order must end at the destination ({n + 1}): {list(order)}"
            raise DataIntegrityError(msg)
        seq = seq[:-1]

    if sorted(seq) != list(range(1, n + 1)):
        msg = f"Trip order does not visit each of {n} waypoints exactly once: {list(order)}"
        raise DataIntegrityError(msg)

    return [waypoints[i - 1] for i in seq]
