"""eBird species taxonomy (``/ref/taxonomy/ebird``).

The full taxonomy is large and changes about once a year, so it is kept in a
``CacheStore`` with a multi-day TTL and only re-fetched when stale or when a
refresh is forced.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import httpx

from hotspot_planner.cache import CacheStore
from hotspot_planner.datasources.ebird.client import ebird_get
from hotspot_planner.schemas import Species

logger = logging.getLogger(__name__)

TAXONOMY_TTL = timedelta(days=7)
TAXONOMY_KEY = "ebird-taxonomy"


def parse_species(raw: dict[str, Any]) -> Species:
    return Species(
        species_code=raw["speciesCode"],
        common_name=raw["comName"],
        scientific_name=raw["sciName"],
        family_common_name=raw.get("familyComName"),
        family_scientific_name=raw.get("familySciName"),
        order=raw.get("order"),
        category=raw.get("category", "species"),
    )


async def fetch_taxonomy(
    client: httpx.AsyncClient,
    api_key: str,
    locale: str = "en",
) -> list[Species]:
    """Download the full taxonomy, species-level entries only."""
    records = await ebird_get(
        client, "/ref/taxonomy/ebird", api_key, {"fmt": "json", "locale": locale}
    )
    return [parse_species(r) for r in records if r.get("category", "species") == "species"]


async def get_taxonomy(
    client: httpx.AsyncClient,
    api_key: str,
    cache: CacheStore[list[Species]],
    *,
    force_refresh: bool = False,
    locale: str = "en",
) -> list[Species]:
    """Cached taxonomy. ``force_refresh`` drops every cached entry first."""
    if force_refresh:
        logger.info("Forcing taxonomy refresh")
        cache.clear()
    return await cache.get_or_fetch(
        f"{TAXONOMY_KEY}:{locale}",
        lambda: fetch_taxonomy(client, api_key, locale),
        ttl=TAXONOMY_TTL,
    )
