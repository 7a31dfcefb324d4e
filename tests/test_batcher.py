"""Tests for the paced, failure-tolerant batcher."""

from __future__ import annotations

import asyncio

import pytest

from hotspot_planner.pipeline.batcher import BatchProgress, PacingPolicy, RateLimitedBatcher


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


async def _double(x: int) -> int:
    await asyncio.sleep(0)
    return x * 2


def _batcher(sleep: SleepRecorder | None = None, **policy: float) -> RateLimitedBatcher:
    policy_ = PacingPolicy(**policy)  # type: ignore[arg-type]
    return RateLimitedBatcher(policy_, sleep=sleep or SleepRecorder())


class TestPacingPolicy:
    """Test policy defaults and validation."""

    def test_defaults(self) -> None:
        policy = PacingPolicy()
        assert policy.batch_size == 5
        assert policy.call_interval == 0.2
        assert policy.batch_delay == 0.0

    def test_rejects_zero_batch(self) -> None:
        with pytest.raises(ValueError, match="batch_size"):
            PacingPolicy(batch_size=0)


class TestStream:
    """Test progress events and result placement."""

    async def test_results_in_input_order(self) -> None:
        result = await _batcher().run(list(range(7)), _double)
        assert result.results == (0, 2, 4, 6, 8, 10, 12)
        assert result.processed == 7
        assert result.complete
        assert not result.cancelled

    async def test_progress_after_each_batch_and_at_end(self) -> None:
        events: list[BatchProgress[int]] = []
        await _batcher(batch_size=3).run(list(range(7)), _double, on_progress=events.append)

        assert [e.processed for e in events] == [3, 6, 7, 7]
        assert [e.complete for e in events] == [False, False, False, True]
        assert all(e.total == 7 for e in events)

    async def test_processed_is_monotonic(self) -> None:
        events: list[BatchProgress[int]] = []
        await _batcher(batch_size=2).run(list(range(9)), _double, on_progress=events.append)
        filled = [sum(r is not None for r in e.results) for e in events]
        assert filled == sorted(filled)

    async def test_empty_input(self) -> None:
        events: list[BatchProgress[int]] = []
        result = await _batcher().run([], _double, on_progress=events.append)
        assert len(events) == 1
        assert result.results == ()
        assert result.fraction == 1.0

    async def test_failures_do_not_halt_batch(self) -> None:
        async def flaky(x: int) -> int:
            if x == 2:
                raise RuntimeError("bad item")
            return x

        result = await _batcher(batch_size=5).run(list(range(5)), flaky)
        assert result.results == (0, 1, None, 3, 4)
        assert [f.index for f in result.failures] == [2]
        assert isinstance(result.failures[0].error, RuntimeError)
        assert result.processed == 5

    async def test_timeout_is_item_failure(self) -> None:
        async def slow(x: int) -> int:
            if x == 1:
                await asyncio.sleep(5)
            return x

        result = await _batcher(call_timeout=0.05, call_interval=0).run([0, 1, 2], slow)
        assert result.results == (0, None, 2)
        assert isinstance(result.failures[0].error, TimeoutError)


class TestPacing:
    """Test dispatch spacing."""

    async def test_call_interval_between_dispatches(self) -> None:
        sleep = SleepRecorder()
        await _batcher(sleep, batch_size=3, call_interval=0.2).run(list(range(3)), _double)
        # Three dispatches, two gaps
        assert sleep.delays == [0.2, 0.2]

    async def test_batch_delay_between_batches(self) -> None:
        sleep = SleepRecorder()
        await _batcher(sleep, batch_size=2, call_interval=0.0, batch_delay=1.0).run(
            list(range(5)), _double
        )
        assert sleep.delays == [1.0, 1.0]

    async def test_calls_within_batch_overlap(self) -> None:
        running = 0
        peak = 0

        async def track(x: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return x

        await _batcher(batch_size=4, call_interval=0).run(list(range(8)), track)
        assert peak == 4


class TestCancellation:
    """Test cooperative cancellation."""

    async def test_cancel_before_start(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        result = await _batcher().run(list(range(5)), _double, cancel=cancel)
        assert result.cancelled
        assert result.processed == 0
        assert result.results == (None,) * 5

    async def test_cancel_keeps_completed_results(self) -> None:
        cancel = asyncio.Event()
        dispatched: list[int] = []

        async def work(x: int) -> int:
            dispatched.append(x)
            return x

        def on_progress(progress: BatchProgress[int]) -> None:
            if progress.processed == 2:
                cancel.set()

        result = await _batcher(batch_size=2, call_interval=0).run(
            list(range(6)), work, on_progress=on_progress, cancel=cancel
        )
        assert result.cancelled
        assert result.results[:2] == (0, 1)
        assert result.results[2:] == (None,) * 4
        assert dispatched == [0, 1]
