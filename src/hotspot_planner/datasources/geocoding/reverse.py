"""Coordinates to a navigation-friendly street address (LocationIQ ``/reverse``)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from hotspot_planner.analysis.locations import dedupe, location_key
from hotspot_planner.cache import CacheStore
from hotspot_planner.datasources.geocoding.client import LOCATIONIQ_API
from hotspot_planner.errors import ApiError
from hotspot_planner.pipeline.batcher import RateLimitedBatcher
from hotspot_planner.reference.search import ADDRESS_UNAVAILABLE
from hotspot_planner.schemas import Location
from hotspot_planner.services.http import get_json

logger = logging.getLogger(__name__)


def format_address(address: dict[str, Any] | None) -> str:
    """Condense a LocationIQ/Nominatim ``address`` block for turn-by-turn use.

    Street (with house number when known), city, state, postcode. The country
    is used only when nothing more specific exists.
    """
    if not address:
        return ADDRESS_UNAVAILABLE

    parts: list[str] = []
    road = address.get("road")
    if road and address.get("house_number"):
        parts.append(f"{address['house_number']} {road}")
    elif road:
        parts.append(road)
    elif address.get("neighbourhood"):
        parts.append(address["neighbourhood"])

    city = next(
        (address[k] for k in ("city", "town", "village", "county") if address.get(k)), None
    )
    if city:
        parts.append(city)
    if address.get("state"):
        parts.append(address["state"])
    if address.get("postcode"):
        parts.append(address["postcode"])

    if not parts and address.get("country"):
        parts.append(address["country"])

    return ", ".join(parts) if parts else ADDRESS_UNAVAILABLE


async def fetch_address(client: httpx.AsyncClient, api_key: str, location: Location) -> str:
    """Uncached reverse lookup. Raises ``ApiError`` if no address comes back."""
    data = await get_json(
        client,
        f"{LOCATIONIQ_API}/reverse",
        params={
            "key": api_key,
            "lat": location.latitude,
            "lon": location.longitude,
            "format": "json",
        },
    )
    if not data or not data.get("display_name"):
        msg = f"No address for {location_key(location)}"
        raise ApiError(msg)
    return format_address(data.get("address"))


async def reverse_geocode(
    client: httpx.AsyncClient,
    api_key: str,
    location: Location,
    cache: CacheStore[str],
) -> str:
    """Cached reverse lookup keyed by ``location_key``."""
    return await cache.get_or_fetch(
        location_key(location),
        lambda: fetch_address(client, api_key, location),
    )


async def batch_reverse_geocode(
    client: httpx.AsyncClient,
    api_key: str,
    locations: Sequence[Location],
    cache: CacheStore[str],
    batcher: RateLimitedBatcher,
) -> list[str]:
    """
    Addresses for many locations, one lookup per distinct coordinate.

    Failed lookups come back as ``ADDRESS_UNAVAILABLE`` so the result always
    lines up with ``locations``.
    """
    unique = dedupe(locations)
    if unique.duplicate_count:
        logger.debug(
            "Reverse geocoding %d unique of %d locations", len(unique.unique), len(locations)
        )

    progress = await batcher.run(
        unique.unique,
        lambda loc: reverse_geocode(client, api_key, loc, cache),
    )
    addresses = [a if a is not None else ADDRESS_UNAVAILABLE for a in progress.results]
    return unique.expand(addresses)
