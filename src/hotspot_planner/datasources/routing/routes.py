"""Driving routes: point-to-point legs and multi-stop paths (OSRM ``/route``)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from hotspot_planner.analysis.locations import dedupe, location_key
from hotspot_planner.cache import CacheStore
from hotspot_planner.datasources.routing.client import (
    OSRM_ROUTE_API,
    check_ok,
    coordinates_path,
    geojson_to_latlng,
)
from hotspot_planner.pipeline.batcher import RateLimitedBatcher
from hotspot_planner.schemas import Location, Route, RouteLeg
from hotspot_planner.services.http import get_json


async def _get_route(
    client: httpx.AsyncClient,
    points: Sequence[Location],
    params: dict[str, str],
) -> dict[str, Any]:
    result: dict[str, Any] = await get_json(
        client, f"{OSRM_ROUTE_API}/{coordinates_path(points)}", params=params
    )
    return result


def parse_legs(raw_legs: list[dict[str, Any]], points: Sequence[Location]) -> tuple[RouteLeg, ...]:
    return tuple(
        RouteLeg(
            start=points[i],
            end=points[i + 1],
            distance_meters=leg["distance"],
            duration_seconds=leg["duration"],
        )
        for i, leg in enumerate(raw_legs)
    )


async def fetch_route(client: httpx.AsyncClient, points: Sequence[Location]) -> Route:
    """Driving route through ``points`` in the given order, with full geometry."""
    if len(points) < 2:
        msg = f"A route needs at least 2 points, got {len(points)}"
        raise ValueError(msg)

    data = await _get_route(
        client,
        points,
        {"overview": "full", "geometries": "geojson", "annotations": "duration,distance"},
    )
    route = check_ok(data, "routes")[0]
    return Route(
        distance_meters=route["distance"],
        duration_seconds=route["duration"],
        geometry=geojson_to_latlng(route.get("geometry")),
        legs=parse_legs(route.get("legs", []), points),
    )


async def fetch_driving_leg(
    client: httpx.AsyncClient, origin: Location, destination: Location
) -> RouteLeg:
    """Distance and duration only, no geometry."""
    data = await _get_route(client, [origin, destination], {"overview": "false"})
    route = check_ok(data, "routes")[0]
    return RouteLeg(
        start=origin,
        end=destination,
        distance_meters=route["distance"],
        duration_seconds=route["duration"],
    )


async def fetch_driving_legs(
    client: httpx.AsyncClient,
    origin: Location,
    destinations: Sequence[Location],
    batcher: RateLimitedBatcher,
    cache: CacheStore[RouteLeg] | None = None,
) -> list[RouteLeg | None]:
    """
    Legs from ``origin`` to each destination, one call per distinct destination.

    A failed leg is ``None``; the result always lines up with ``destinations``.
    """
    origin_key = location_key(origin)
    unique = dedupe(destinations)

    async def one(dest: Location) -> RouteLeg:
        if cache is None:
            return await fetch_driving_leg(client, origin, dest)
        return await cache.get_or_fetch(
            f"{origin_key}->{location_key(dest)}",
            lambda: fetch_driving_leg(client, origin, dest),
        )

    progress = await batcher.run(unique.unique, one)
    return unique.expand(list(progress.results))
