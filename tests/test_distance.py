"""Tests for haversine distance and the route corridor filter."""

from __future__ import annotations

import pytest

from hotspot_planner.analysis.distance import filter_near_route, haversine, within_corridor
from hotspot_planner.schemas import Hotspot, Location


def _loc(lat: float, lng: float) -> Location:
    return Location(latitude=lat, longitude=lng)


def _hotspot(hid: str, lat: float, lng: float) -> Hotspot:
    return Hotspot(id=hid, name=hid, location=_loc(lat, lng), origin_distance_km=0.0)


class TestHaversine:
    """Test great-circle distance."""

    def test_same_point(self) -> None:
        assert haversine(_loc(45.5, -122.6), _loc(45.5, -122.6)) == 0.0

    def test_one_degree_latitude(self) -> None:
        assert haversine(_loc(40, -75), _loc(41, -75)) == pytest.approx(111.19, abs=0.01)

    def test_symmetric(self) -> None:
        a, b = _loc(45.5, -122.6), _loc(47.6, -122.3)
        assert haversine(a, b) == pytest.approx(haversine(b, a))

    def test_custom_radius(self) -> None:
        d = haversine(_loc(0, 0), _loc(0, 90), radius_km=1.0)
        assert d == pytest.approx(1.5708, abs=1e-4)

    def test_portland_to_seattle(self) -> None:
        portland, seattle = _loc(45.5152, -122.6784), _loc(47.6062, -122.3321)
        assert haversine(portland, seattle) == pytest.approx(234.0, abs=1.0)


class TestCorridor:
    """Test route corridor inclusion."""

    start = _loc(40, -75)
    end = _loc(41, -75)

    def test_point_on_path_included(self) -> None:
        assert within_corridor(self.start, self.end, _loc(40.5, -75), 20)

    def test_far_east_excluded(self) -> None:
        assert not within_corridor(self.start, self.end, _loc(40.5, -70), 20)

    def test_far_west_excluded(self) -> None:
        assert not within_corridor(self.start, self.end, _loc(40.5, -80), 20)

    def test_endpoints_included(self) -> None:
        assert within_corridor(self.start, self.end, self.start, 0)
        assert within_corridor(self.start, self.end, self.end, 0)

    def test_filter_keeps_order(self) -> None:
        hotspots = [
            _hotspot("L3", 40.8, -75),
            _hotspot("east", 40.5, -70),
            _hotspot("L1", 40.2, -75.01),
            _hotspot("west", 40.5, -80),
        ]
        kept = filter_near_route(self.start, self.end, hotspots, 20)
        assert [h.id for h in kept] == ["L3", "L1"]
