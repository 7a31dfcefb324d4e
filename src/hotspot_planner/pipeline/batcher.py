"""Paced, failure-tolerant concurrent execution over a list of items.

Items are dispatched in fixed-size batches. Inside a batch the calls run
concurrently, but their starts are staggered by ``call_interval`` so the
upstream sees a steady request rate rather than bursts. A failed or timed-out
call leaves its slot empty and never stops the batch.

Results are reported as ``BatchProgress`` events: one after every batch and a
final one at completion (or cancellation).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from hotspot_planner.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PacingPolicy:
    """How hard to push an upstream. Defaults give roughly 5 calls/second."""

    batch_size: int = 5
    call_interval: float = 0.2
    batch_delay: float = 0.0
    call_timeout: float = 15.0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            msg = f"batch_size must be >= 1, got {self.batch_size}"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls, settings: Settings) -> PacingPolicy:
        return cls(
            batch_size=settings.batch_size,
            call_interval=settings.call_interval_s,
            batch_delay=settings.batch_delay_s,
            call_timeout=settings.call_timeout_s,
        )


@dataclass(frozen=True)
class ItemFailure:
    """An item whose call raised or timed out."""

    index: int
    error: BaseException


@dataclass(frozen=True)
class BatchProgress(Generic[R]):
    """State of every slot after some number of items have finished.

    ``results[i]`` is ``None`` until item ``i`` succeeds.
    """

    results: tuple[R | None, ...]
    failures: tuple[ItemFailure, ...] = field(default=())
    processed: int = 0
    total: int = 0
    cancelled: bool = False
    complete: bool = False

    @property
    def fraction(self) -> float:
        return self.processed / self.total if self.total else 1.0


class RateLimitedBatcher:
    """Run ``enrich`` over items under a ``PacingPolicy``.

    Args:
        policy: Batch size, pacing, and per-call timeout.
        sleep: Awaitable sleep used for pacing; tests pass a recorder.
    """

    def __init__(self, policy: PacingPolicy | None = None, sleep: Sleep = asyncio.sleep) -> None:
        self.policy = policy or PacingPolicy()
        self._sleep = sleep

    async def _call(self, enrich: Callable[[T], Awaitable[R]], item: T) -> R:
        return await asyncio.wait_for(enrich(item), timeout=self.policy.call_timeout)

    async def stream(
        self,
        items: Sequence[T],
        enrich: Callable[[T], Awaitable[R]],
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[BatchProgress[R]]:
        """Yield progress after each batch and once more at the end."""
        total = len(items)
        results: list[R | None] = [None] * total
        failures: list[ItemFailure] = []
        processed = 0
        cancelled = False
        size = self.policy.batch_size

        def snapshot(*, complete: bool = False) -> BatchProgress[R]:
            return BatchProgress(
                results=tuple(results),
                failures=tuple(failures),
                processed=processed,
                total=total,
                cancelled=cancelled,
                complete=complete,
            )

        for start in range(0, total, size):
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            if start and self.policy.batch_delay:
                await self._sleep(self.policy.batch_delay)

            dispatched: list[tuple[int, asyncio.Task[R]]] = []
            for index in range(start, min(start + size, total)):
                if cancel is not None and cancel.is_set():
                    cancelled = True
                    break
                if dispatched and self.policy.call_interval:
                    await self._sleep(self.policy.call_interval)
                task = asyncio.ensure_future(self._call(enrich, items[index]))
                dispatched.append((index, task))

            try:
                outcomes = await asyncio.gather(*(t for _, t in dispatched), return_exceptions=True)
            except asyncio.CancelledError:
                for _, task in dispatched:
                    task.cancel()
                raise

            for (index, _), outcome in zip(dispatched, outcomes, strict=True):
                processed += 1
                if isinstance(outcome, BaseException):
                    if isinstance(outcome, TimeoutError):
                        logger.warning(
                            "Item %d timed out after %.1fs", index, self.policy.call_timeout
                        )
                    else:
                        logger.warning("Item %d failed: %s", index, outcome)
                    failures.append(ItemFailure(index=index, error=outcome))
                else:
                    results[index] = outcome

            if cancelled:
                break
            yield snapshot()

        yield snapshot(complete=True)

    async def run(
        self,
        items: Sequence[T],
        enrich: Callable[[T], Awaitable[R]],
        on_progress: Callable[[BatchProgress[R]], None] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchProgress[R]:
        """Consume ``stream`` and return the final progress."""
        last: BatchProgress[R] | None = None
        async for progress in self.stream(items, enrich, cancel=cancel):
            if on_progress is not None:
                on_progress(progress)
            last = progress
        assert last is not None
        return last
