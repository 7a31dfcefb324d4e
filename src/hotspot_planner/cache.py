"""In-memory, staleness-aware cache for enrichment lookups.

Entries carry their own TTL. An expired entry is not discarded: it becomes
*stale* and is served as a degraded hit when a refresh fails, so a flaky
upstream costs accuracy rather than results.

Concurrent ``get_or_fetch`` calls for the same key share one in-flight fetch,
which keeps N identical lookups inside a batch down to a single network call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Generic, TypeVar

from hotspot_planner.errors import CacheMissWithFetchFailure

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class CacheState(StrEnum):
    FRESH = "fresh"
    STALE = "stale"
    MISSING = "missing"


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the moment it was written."""

    key: str
    value: V
    inserted_at: datetime
    ttl: timedelta

    def is_fresh(self, now: datetime) -> bool:
        return now - self.inserted_at < self.ttl


@dataclass(frozen=True)
class _Outcome(Generic[V]):
    value: V | None = None
    error: BaseException | None = None
    # The leading caller was cancelled; waiters fetch for themselves
    retry: bool = False


class CacheStore(Generic[V]):
    """Key/value cache with per-entry TTL, stale fallback, and call suppression.

    Args:
        default_ttl: Lifetime used when ``put``/``get_or_fetch`` get no ``ttl``.
        clock: Returns the current aware datetime. Injected for tests.
        name: Label used in log messages.
    """

    def __init__(
        self,
        default_ttl: timedelta,
        clock: Clock = utc_now,
        name: str = "cache",
    ) -> None:
        self.default_ttl = default_ttl
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self._inflight: dict[str, asyncio.Future[_Outcome[V]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> tuple[V | None, CacheState]:
        """Look up ``key`` without fetching.

        Returns the value together with its state; the value is ``None`` only
        when the state is ``MISSING``.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, CacheState.MISSING
        if entry.is_fresh(self._clock()):
            return entry.value, CacheState.FRESH
        return entry.value, CacheState.STALE

    def put(self, key: str, value: V, ttl: timedelta | None = None) -> None:
        """Insert or overwrite ``key``. Last write wins."""
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            ttl=ttl if ttl is not None else self.default_ttl,
        )

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[V]],
        ttl: timedelta | None = None,
    ) -> V:
        """Return the cached value for ``key``, fetching it if not fresh.

        A fresh hit never calls ``fetch``. If the fetch fails, the stale value
        is returned when one exists; otherwise ``CacheMissWithFetchFailure``
        is raised, chained to the fetch error. A fetch that is cancelled
        writes nothing, and callers waiting on it start over instead of
        inheriting the cancellation.
        """
        while True:
            cached, state = self.get(key)
            if state is CacheState.FRESH:
                logger.debug("%s hit for %s", self.name, key)
                return cached  # type: ignore[return-value]

            pending = self._inflight.get(key)
            if pending is None:
                break
            outcome = await asyncio.shield(pending)
            if outcome.retry:
                continue
            if outcome.error is not None:
                raise outcome.error
            return outcome.value  # type: ignore[return-value]

        pending = asyncio.get_running_loop().create_future()
        self._inflight[key] = pending
        try:
            try:
                value = await fetch()
            except asyncio.CancelledError:
                pending.set_result(_Outcome(retry=True))
                raise
            except Exception as exc:
                stale, state = self.get(key)
                if state is CacheState.MISSING:
                    error = CacheMissWithFetchFailure(key)
                    pending.set_result(_Outcome(error=error))
                    raise error from exc
                logger.warning(
                    "%s refresh failed for %s, serving stale value: %s", self.name, key, exc
                )
                pending.set_result(_Outcome(value=stale))
                return stale  # type: ignore[return-value]

            self.put(key, value, ttl)
            pending.set_result(_Outcome(value=value))
            return value
        finally:
            del self._inflight[key]
