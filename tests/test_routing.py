"""Tests for OSRM routing."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import httpx
import pytest

from hotspot_planner.cache import CacheStore
from hotspot_planner.datasources.routing import (
    fetch_driving_leg,
    fetch_driving_legs,
    fetch_optimized_trip,
    fetch_route,
)
from hotspot_planner.datasources.routing.client import coordinates_path, geojson_to_latlng
from hotspot_planner.errors import ApiError, DataIntegrityError
from hotspot_planner.pipeline.batcher import PacingPolicy, RateLimitedBatcher
from hotspot_planner.schemas import Location, RouteLeg
from hotspot_planner.services.http import create_client

START = Location(latitude=45.5, longitude=-122.6)
A = Location(latitude=45.6, longitude=-122.7)
B = Location(latitude=45.7, longitude=-122.8)
C = Location(latitude=45.8, longitude=-122.9)
END = Location(latitude=46.0, longitude=-123.0)

LEG = {"distance": 12000.0, "duration": 900.0}


def _client(
    payload: dict[str, Any] | None = None,
    requests: list[httpx.Request] | None = None,
    status: int = 200,
) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status, json=payload)

    return create_client(transport=httpx.MockTransport(handler))


async def _no_sleep(_delay: float) -> None:
    await asyncio.sleep(0)


class TestHelpers:
    def test_coordinates_path_is_lng_lat(self) -> None:
        assert coordinates_path([START, A]) == "-122.6,45.5;-122.7,45.6"

    def test_geojson_flipped(self) -> None:
        geometry = {"type": "LineString", "coordinates": [[-122.6, 45.5], [-122.7, 45.6]]}
        assert geojson_to_latlng(geometry) == ((45.5, -122.6), (45.6, -122.7))

    def test_geojson_missing(self) -> None:
        assert geojson_to_latlng(None) == ()


class TestRoute:
    async def test_fetch_route(self) -> None:
        payload = {
            "code": "Ok",
            "routes": [
                {
                    "distance": 24000.0,
                    "duration": 1800.0,
                    "geometry": {"coordinates": [[-122.6, 45.5], [-122.8, 45.7]]},
                    "legs": [LEG, LEG],
                }
            ],
        }
        requests: list[httpx.Request] = []
        async with _client(payload, requests) as client:
            route = await fetch_route(client, [START, A, B])

        assert route.duration_seconds == 1800.0
        assert route.geometry[0] == (45.5, -122.6)
        assert [(leg.start, leg.end) for leg in route.legs] == [(START, A), (A, B)]
        assert requests[0].url.params["geometries"] == "geojson"

    async def test_route_needs_two_points(self) -> None:
        async with _client() as client:
            with pytest.raises(ValueError, match="at least 2"):
                await fetch_route(client, [START])

    async def test_no_route(self) -> None:
        async with _client({"code": "NoRoute", "routes": []}) as client:
            with pytest.raises(ApiError, match="NoRoute"):
                await fetch_driving_leg(client, START, A)

    async def test_driving_leg(self) -> None:
        async with _client({"code": "Ok", "routes": [LEG]}) as client:
            leg = await fetch_driving_leg(client, START, A)
        assert leg.distance_km == 12.0
        assert leg.duration_seconds == 900.0

    async def test_driving_legs_dedupe_and_cache(self) -> None:
        requests: list[httpx.Request] = []
        cache: CacheStore[RouteLeg] = CacheStore(timedelta(hours=24))
        batcher = RateLimitedBatcher(PacingPolicy(call_interval=0), sleep=_no_sleep)
        async with _client({"code": "Ok", "routes": [LEG]}, requests) as client:
            legs = await fetch_driving_legs(client, START, [A, B, A], batcher, cache)
            await fetch_driving_legs(client, START, [B], batcher, cache)

        assert len(legs) == 3
        assert legs[0] == legs[2]
        assert len(requests) == 2
        assert len(cache) == 2

    async def test_driving_legs_failure_is_none(self) -> None:
        batcher = RateLimitedBatcher(PacingPolicy(call_interval=0), sleep=_no_sleep)
        async with _client(status=500) as client:
            legs = await fetch_driving_legs(client, START, [A], batcher)
        assert legs == [None]


class TestOptimizedTrip:
    async def test_round_trip_reordered(self) -> None:
        payload = {
            "code": "Ok",
            # Input order START, A, B, C; trip visits START, C, A, B
            "waypoints": [{"waypoint_index": i} for i in (0, 2, 3, 1)],
            "trips": [{"distance": 50000.0, "duration": 3600.0, "legs": [LEG] * 4}],
        }
        requests: list[httpx.Request] = []
        async with _client(payload, requests) as client:
            trip = await fetch_optimized_trip(client, START, [A, B, C])

        assert trip.waypoint_order == (0, 3, 1, 2)
        assert trip.waypoints == (C, A, B)
        assert trip.legs[0].end == C
        assert trip.legs[-1].end == START
        assert requests[0].url.params["roundtrip"] == "true"

    async def test_open_trip_keeps_destination(self) -> None:
        payload = {
            "code": "Ok",
            "waypoints": [{"waypoint_index": i} for i in (0, 2, 1, 3)],
            "trips": [{"distance": 50000.0, "duration": 3600.0, "legs": [LEG] * 3}],
        }
        requests: list[httpx.Request] = []
        async with _client(payload, requests) as client:
            trip = await fetch_optimized_trip(client, START, [A, B], end=END)

        assert trip.waypoints == (B, A)
        assert trip.legs[-1].end == END
        assert requests[0].url.params["destination"] == "last"

    async def test_bad_order_rejected(self) -> None:
        payload = {
            "code": "Ok",
            "waypoints": [{"waypoint_index": i} for i in (0, 1, 1)],
            "trips": [{"distance": 1.0, "duration": 1.0}],
        }
        async with _client(payload) as client:
            with pytest.raises(DataIntegrityError):
                await fetch_optimized_trip(client, START, [A, B])

    async def test_needs_waypoints(self) -> None:
        async with _client() as client:
            with pytest.raises(ValueError):
                await fetch_optimized_trip(client, START, [])
