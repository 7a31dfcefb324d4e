"""Tests for location keys and deduplication."""

from __future__ import annotations

import pytest

from hotspot_planner.analysis.locations import dedupe, location_key
from hotspot_planner.schemas import Location


def _loc(lat: float, lng: float) -> Location:
    return Location(latitude=lat, longitude=lng)


class TestLocationKey:
    """Test canonical key formatting."""

    def test_six_decimal_places(self) -> None:
        assert location_key(_loc(40.7128, -74.006)) == "40.712800,-74.006000"

    def test_rounds_beyond_precision(self) -> None:
        assert location_key(_loc(12.3456784, 98.7654321)) == "12.345678,98.765432"

    def test_nearby_points_collide(self) -> None:
        a, b = _loc(12.3456781, 98.765432), _loc(12.3456779, 98.765432)
        assert location_key(a) == location_key(b)

    def test_negative_zero_normalized(self) -> None:
        assert location_key(_loc(-0.0000001, 0.0)) == "0.000000,0.000000"
        assert location_key(_loc(-0.0, -0.0)) == "0.000000,0.000000"

    def test_small_negative_kept(self) -> None:
        assert location_key(_loc(-0.000001, 5.0)) == "-0.000001,5.000000"


class TestDedupe:
    """Test order-preserving deduplication."""

    def test_no_duplicates(self) -> None:
        locs = [_loc(1, 1), _loc(2, 2), _loc(3, 3)]
        result = dedupe(locs)
        assert result.unique == tuple(locs)
        assert result.index_of == (0, 1, 2)
        assert result.duplicate_count == 0

    def test_collapses_duplicates_keeping_first(self) -> None:
        a, b = _loc(1, 1), _loc(2, 2)
        result = dedupe([a, b, _loc(1, 1), b, _loc(1.0000001, 1)])
        assert result.unique == (a, b)
        assert result.index_of == (0, 1, 0, 1, 0)
        assert result.duplicate_count == 3

    def test_empty(self) -> None:
        result = dedupe([])
        assert result.unique == ()
        assert result.index_of == ()

    def test_index_of_is_total_and_order_preserving(self) -> None:
        locs = [_loc(i % 4, 0) for i in range(12)]
        result = dedupe(locs)
        assert len(result.unique) <= len(locs)
        assert len(result.index_of) == len(locs)
        for i, loc in enumerate(locs):
            assert location_key(result.unique[result.index_of[i]]) == location_key(loc)
        # First occurrences appear in input order
        index_of = result.index_of
        firsts = [index_of[i] for i in range(len(locs)) if index_of[i] not in index_of[:i]]
        assert firsts == sorted(firsts)

    def test_expand_fans_out(self) -> None:
        result = dedupe([_loc(1, 1), _loc(2, 2), _loc(1, 1)])
        assert result.expand(["a", "b"]) == ["a", "b", "a"]

    def test_expand_length_mismatch(self) -> None:
        result = dedupe([_loc(1, 1)])
        with pytest.raises(ValueError, match="Expected 1 values"):
            result.expand(["a", "b"])
