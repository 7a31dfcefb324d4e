"""Progressive hotspot enrichment.

One search runs in three phases::

    base_fetch ──> enriching ──> done
        │
        └──> failed   (discovery error; nothing to return)

The discovery call fixes the hotspot list and its order. Enrichment then
runs through a ``RateLimitedBatcher``, and every batch produces a new frozen
``Snapshot`` with the same N hotspots, more of them filled in. Sorting is the
caller's job once the last snapshot arrives.

Each hotspot gets one primary enricher (recent observations) and any number
of secondary enrichers (address, driving leg, weather). Sources fail
independently: a failure leaves that source's fields unset and is recorded in
``Snapshot.failures``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Protocol

import httpx

from hotspot_planner.analysis.locations import location_key
from hotspot_planner.analysis.species import distinct_species_count, has_notable
from hotspot_planner.cache import CacheStore, Clock, utc_now
from hotspot_planner.config import Settings
from hotspot_planner.datasources.ebird import fetch_nearby_hotspots, fetch_recent_observations
from hotspot_planner.datasources.geocoding import reverse_geocode
from hotspot_planner.datasources.routing import fetch_driving_leg
from hotspot_planner.datasources.weather import fetch_current_conditions
from hotspot_planner.errors import BaseFetchFailure, HotspotPlannerError, TransientItemFailure
from hotspot_planner.pipeline.batcher import (
    BatchProgress,
    ItemFailure,
    PacingPolicy,
    RateLimitedBatcher,
)
from hotspot_planner.schemas import (
    EnrichmentFailure,
    Hotspot,
    Phase,
    RouteLeg,
    SearchParams,
    Snapshot,
    WeatherConditions,
)

logger = logging.getLogger(__name__)

HotspotSource = Callable[[SearchParams], Awaitable[list[Hotspot]]]


class Enricher(Protocol):
    """Looks something up for one hotspot and returns the fields to merge."""

    source: str

    async def __call__(self, hotspot: Hotspot, params: SearchParams) -> dict[str, Any]: ...


# =============================================================================
# Caches
# =============================================================================


@dataclass
class Caches:
    """The cache instances shared across searches."""

    addresses: CacheStore[str]
    routes: CacheStore[RouteLeg]
    weather: CacheStore[WeatherConditions]

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> Caches:
        return cls(
            addresses=CacheStore(
                timedelta(seconds=settings.reverse_geocode_ttl_s), clock=clock, name="address"
            ),
            routes=CacheStore(timedelta(seconds=settings.route_ttl_s), clock=clock, name="route"),
            weather=CacheStore(
                timedelta(seconds=settings.weather_ttl_s), clock=clock, name="weather"
            ),
        )


# =============================================================================
# Enrichers
# =============================================================================


def _wrap(hotspot: Hotspot, source: str, exc: Exception) -> TransientItemFailure:
    return TransientItemFailure(hotspot.id, source, str(exc) or type(exc).__name__)


@dataclass
class EbirdDiscovery:
    """Base fetch: nearby eBird hotspots for the search parameters."""

    client: httpx.AsyncClient
    api_key: str

    async def __call__(self, params: SearchParams) -> list[Hotspot]:
        return await fetch_nearby_hotspots(
            self.client, self.api_key, params.origin, params.radius_km, params.days_back
        )


@dataclass
class ObservationEnricher:
    """Recent observations, distinct species count, and the notable flag."""

    client: httpx.AsyncClient
    api_key: str
    notable_codes: frozenset[str] = frozenset()
    source: str = "observations"

    async def __call__(self, hotspot: Hotspot, params: SearchParams) -> dict[str, Any]:
        try:
            observations = await fetch_recent_observations(
                self.client, self.api_key, hotspot.id, params.days_back
            )
        except HotspotPlannerError as exc:
            raise _wrap(hotspot, self.source, exc) from exc
        return {
            "observations": tuple(observations),
            "recent_species_count": distinct_species_count(observations),
            "has_notable_species": has_notable(observations, self.notable_codes),
        }


@dataclass
class AddressEnricher:
    """Street address for the hotspot's coordinates.

    A failed lookup leaves ``address`` unset and is recorded on the snapshot
    as a failure. Display code shows ``ADDRESS_UNAVAILABLE`` in its place.
    """

    client: httpx.AsyncClient
    api_key: str
    cache: CacheStore[str]
    source: str = "address"

    async def __call__(self, hotspot: Hotspot, params: SearchParams) -> dict[str, Any]:
        try:
            address = await reverse_geocode(self.client, self.api_key, hotspot.location, self.cache)
        except HotspotPlannerError as exc:
            raise _wrap(hotspot, self.source, exc) from exc
        return {"address": address}


@dataclass
class DrivingRouteEnricher:
    """Driving distance and time from the search origin."""

    client: httpx.AsyncClient
    cache: CacheStore[RouteLeg]
    source: str = "route"

    async def __call__(self, hotspot: Hotspot, params: SearchParams) -> dict[str, Any]:
        key = f"{location_key(params.origin)}->{location_key(hotspot.location)}"
        try:
            leg = await self.cache.get_or_fetch(
                key, lambda: fetch_driving_leg(self.client, params.origin, hotspot.location)
            )
        except HotspotPlannerError as exc:
            raise _wrap(hotspot, self.source, exc) from exc
        return {
            "driving_distance_km": round(leg.distance_km, 2),
            "driving_duration_s": leg.duration_seconds,
        }


@dataclass
class WeatherEnricher:
    client: httpx.AsyncClient
    cache: CacheStore[WeatherConditions]
    source: str = "weather"

    async def __call__(self, hotspot: Hotspot, params: SearchParams) -> dict[str, Any]:
        try:
            weather = await fetch_current_conditions(self.client, hotspot.location, self.cache)
        except HotspotPlannerError as exc:
            raise _wrap(hotspot, self.source, exc) from exc
        return {"weather": weather}


# =============================================================================
# Pipeline
# =============================================================================


@dataclass(frozen=True)
class ItemPatch:
    """Everything one hotspot's enrichment produced."""

    patch: dict[str, Any] = field(default_factory=dict)
    failures: tuple[EnrichmentFailure, ...] = ()


def select_base_hotspots(hotspots: Sequence[Hotspot], max_results: int) -> list[Hotspot]:
    """Drop repeated coordinates, then keep the ``max_results`` nearest."""
    seen: set[str] = set()
    unique: list[Hotspot] = []
    for h in hotspots:
        key = location_key(h.location)
        if key in seen:
            continue
        seen.add(key)
        unique.append(h)
    unique.sort(key=lambda h: h.origin_distance_km)
    return unique[:max_results]


def _cancelling() -> bool:
    """True while the running task itself has a pending cancellation."""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


def _failure_from_item(hotspot: Hotspot, failure: ItemFailure) -> EnrichmentFailure:
    error = failure.error
    if isinstance(error, TransientItemFailure):
        return EnrichmentFailure(hotspot_id=hotspot.id, source=error.source, message=error.reason)
    if isinstance(error, TimeoutError):
        return EnrichmentFailure(hotspot_id=hotspot.id, source="timeout", message="call timed out")
    return EnrichmentFailure(hotspot_id=hotspot.id, source="enrichment", message=str(error))


class EnrichmentPipeline:
    """Turns search parameters into a stream of progressively enriched snapshots.

    Args:
        discover: Base fetch returning the candidate hotspots.
        primary: Observation lookup, run for every hotspot.
        secondary: Extra enrichers, each failing independently.
        batcher: Pacing for the per-hotspot calls.
    """

    def __init__(
        self,
        discover: HotspotSource,
        primary: Enricher,
        secondary: Sequence[Enricher] = (),
        batcher: RateLimitedBatcher | None = None,
    ) -> None:
        self.discover = discover
        self.primary = primary
        self.secondary = tuple(secondary)
        self.batcher = batcher or RateLimitedBatcher()

    async def _enrich_one(self, hotspot: Hotspot, params: SearchParams) -> ItemPatch:
        enrichers = (self.primary, *self.secondary)
        outcomes = await asyncio.gather(
            *(e(hotspot, params) for e in enrichers), return_exceptions=True
        )

        patch: dict[str, Any] = {}
        failures: list[EnrichmentFailure] = []
        for enricher, outcome in zip(enrichers, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError) and _cancelling():
                raise outcome
            if isinstance(outcome, Exception | asyncio.CancelledError):
                if isinstance(outcome, TransientItemFailure):
                    reason = outcome.reason
                elif isinstance(outcome, asyncio.CancelledError):
                    reason = "lookup cancelled"
                else:
                    reason = str(outcome) or type(outcome).__name__
                logger.warning(
                    "%s enrichment failed for %s: %s", enricher.source, hotspot.id, reason
                )
                failures.append(
                    EnrichmentFailure(hotspot_id=hotspot.id, source=enricher.source, message=reason)
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                patch.update(outcome)
        return ItemPatch(patch=patch, failures=tuple(failures))

    def _snapshot(
        self,
        phase: Phase,
        base: Sequence[Hotspot],
        progress: BatchProgress[ItemPatch],
    ) -> Snapshot:
        hotspots: list[Hotspot] = []
        failures: list[EnrichmentFailure] = []
        for hotspot, item in zip(base, progress.results, strict=True):
            if item is None:
                hotspots.append(hotspot)
                continue
            hotspots.append(hotspot.merge(item.patch))
            failures.extend(item.failures)
        failures.extend(_failure_from_item(base[f.index], f) for f in progress.failures)

        return Snapshot(
            phase=phase,
            hotspots=tuple(hotspots),
            processed=progress.processed,
            total=progress.total,
            failures=tuple(failures),
            cancelled=progress.cancelled,
        )

    async def run(
        self,
        params: SearchParams,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[Snapshot]:
        """Yield the base snapshot, one per batch, and a final ``done`` snapshot.

        Raises:
            BaseFetchFailure: The discovery call failed.
        """
        try:
            discovered = await self.discover(params)
        except Exception as exc:
            logger.error("Base fetch failed for %s: %s", location_key(params.origin), exc)
            msg = f"Could not load hotspots near {location_key(params.origin)}: {exc}"
            raise BaseFetchFailure(msg) from exc

        base = select_base_hotspots(discovered, params.max_results)
        logger.info("Enriching %d hotspots (%d discovered)", len(base), len(discovered))
        yield Snapshot(phase=Phase.BASE_FETCH, hotspots=tuple(base), total=len(base))

        async def enrich(hotspot: Hotspot) -> ItemPatch:
            return await self._enrich_one(hotspot, params)

        async with aclosing(self.batcher.stream(base, enrich, cancel=cancel)) as events:
            async for progress in events:
                phase = Phase.DONE if progress.complete else Phase.ENRICHING
                snapshot = self._snapshot(phase, base, progress)
                logger.debug(
                    "Snapshot %s: %d/%d processed, %d failures",
                    phase,
                    snapshot.processed,
                    snapshot.total,
                    len(snapshot.failures),
                )
                yield snapshot


def create_pipeline(
    client: httpx.AsyncClient,
    settings: Settings,
    caches: Caches,
    *,
    notable_codes: frozenset[str] = frozenset(),
    include_address: bool = False,
    include_route: bool = False,
    include_weather: bool = False,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> EnrichmentPipeline:
    """Wire an ``EnrichmentPipeline`` from settings.

    Raises:
        ValueError: No eBird key is configured, or an address lookup was
            requested without a LocationIQ key.
    """
    if settings.ebird_api_key is None:
        msg = "HOTSPOT_PLANNER_EBIRD_API_KEY is not set"
        raise ValueError(msg)
    ebird_key = settings.ebird_api_key.get_secret_value()

    secondary: list[Enricher] = []
    if include_address:
        if settings.locationiq_api_key is None:
            msg = "HOTSPOT_PLANNER_LOCATIONIQ_API_KEY is not set"
            raise ValueError(msg)
        locationiq_key = settings.locationiq_api_key.get_secret_value()
        secondary.append(AddressEnricher(client, locationiq_key, caches.addresses))
    if include_route:
        secondary.append(DrivingRouteEnricher(client, caches.routes))
    if include_weather:
        secondary.append(WeatherEnricher(client, caches.weather))

    return EnrichmentPipeline(
        discover=EbirdDiscovery(client, ebird_key),
        primary=ObservationEnricher(client, ebird_key, notable_codes),
        secondary=secondary,
        batcher=RateLimitedBatcher(PacingPolicy.from_settings(settings), sleep=sleep),
    )
