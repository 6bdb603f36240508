"""Unit tests for BatchScheduler."""

from __future__ import annotations

import asyncio

import pytest

from spokable.transform.core import (
    AuthError,
    CancellationToken,
    ErrorKind,
    ExhaustedBackendsError,
    RunCancelledError,
    SchedulingMode,
    ServerError,
)
from spokable.transform.models import Chunk, TransformOutput
from spokable.transform.runtime import (
    BatchScheduler,
    InMemoryObserver,
    RetryOrchestrator,
    RetryPolicy,
)


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_chunks(count: int) -> list[Chunk]:
    return [
        Chunk(index=i, text=f"chunk-{i}", token_estimate=2, has_overlap=i > 0)
        for i in range(count)
    ]


def index_of(text: str) -> int:
    return int(text.rsplit("-", 1)[1])


def echo(text: str, backend: str) -> TransformOutput:
    return TransformOutput(text=text.upper(), backend=backend)


def make_scheduler(
    policy: RetryPolicy,
    observer: InMemoryObserver | None = None,
    backends: tuple[str, ...] = ("primary",),
) -> tuple[BatchScheduler, RecordingSleep]:
    sleep = RecordingSleep()
    orchestrator = RetryOrchestrator(backends, policy, sleep=sleep)
    return BatchScheduler(orchestrator, observer=observer, sleep=sleep), sleep


class TestSequentialScheduling:
    """Test sequential mode."""

    @pytest.mark.asyncio
    async def test_empty_run(self):
        scheduler, sleep = make_scheduler(RetryPolicy())

        async def transform(text: str, backend: str) -> TransformOutput:
            raise AssertionError("no chunks to transform")

        assert await scheduler.run([], transform) == []
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_one_at_a_time_with_rate_limit_delay(self):
        observer = InMemoryObserver()
        scheduler, sleep = make_scheduler(RetryPolicy(rate_limit_delay=0.5), observer)
        in_flight = 0
        peak = 0

        async def transform(text: str, backend: str) -> TransformOutput:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return echo(text, backend)

        results = await scheduler.run(make_chunks(4), transform)

        assert peak == 1
        assert [r.index for r in results] == [0, 1, 2, 3]
        assert [r.output_text for r in results] == ["CHUNK-0", "CHUNK-1", "CHUNK-2", "CHUNK-3"]
        assert all(r.success and r.backend_used == "primary" and r.attempts == 1 for r in results)
        # No delay after the last chunk
        assert sleep.delays == [0.5, 0.5, 0.5]
        assert observer.resolved_indices == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_failed_chunk_recorded_and_run_continues(self):
        scheduler, _ = make_scheduler(RetryPolicy(max_retries=1, auto_continue_on_failure=True))

        async def transform(text: str, backend: str) -> TransformOutput:
            if index_of(text) == 1:
                raise ServerError("Service unavailable")
            return echo(text, backend)

        results = await scheduler.run(make_chunks(3), transform)

        assert [r.success for r in results] == [True, False, True]
        failed = results[1]
        assert failed.index == 1
        assert failed.error_kind == ErrorKind.EXHAUSTED
        assert failed.attempts == 2
        assert "Service unavailable" in failed.error_message

    @pytest.mark.asyncio
    async def test_failed_chunk_aborts_without_auto_continue(self):
        observer = InMemoryObserver()
        scheduler, _ = make_scheduler(
            RetryPolicy(max_retries=0, auto_continue_on_failure=False),
            observer,
        )
        seen: list[int] = []

        async def transform(text: str, backend: str) -> TransformOutput:
            seen.append(index_of(text))
            if index_of(text) == 1:
                raise ServerError("down")
            return echo(text, backend)

        with pytest.raises(ExhaustedBackendsError):
            await scheduler.run(make_chunks(4), transform)

        assert seen == [0, 1]
        assert observer.resolved_indices == [0, 1]
        assert observer.events[-1].success is False

    @pytest.mark.asyncio
    async def test_auth_error_aborts_run(self):
        scheduler, _ = make_scheduler(RetryPolicy(auto_continue_on_failure=True))
        seen: list[int] = []

        async def transform(text: str, backend: str) -> TransformOutput:
            seen.append(index_of(text))
            if index_of(text) == 1:
                raise AuthError("API key invalid")
            return echo(text, backend)

        with pytest.raises(AuthError):
            await scheduler.run(make_chunks(4), transform)

        assert seen == [0, 1]

    @pytest.mark.asyncio
    async def test_progress_counts(self):
        observer = InMemoryObserver()
        scheduler, _ = make_scheduler(RetryPolicy(), observer)

        async def transform(text: str, backend: str) -> TransformOutput:
            return echo(text, backend)

        await scheduler.run(make_chunks(5), transform)

        assert [e.completed for e in observer.events] == [1, 2, 3, 4, 5]
        assert all(e.total == 5 for e in observer.events)
        assert observer.events[-1].percent == 100.0


class TestParallelScheduling:
    """Test bounded-parallel mode."""

    @pytest.mark.asyncio
    async def test_results_in_input_order_despite_completion_order(self):
        observer = InMemoryObserver()
        policy = RetryPolicy(max_retries=0, parallelism=3, mode=SchedulingMode.PARALLEL)
        scheduler, sleep = make_scheduler(policy, observer)

        async def transform(text: str, backend: str) -> TransformOutput:
            index = index_of(text)
            if index == 4:
                raise ServerError("Internal error")
            # Later chunks in a group finish first
            await asyncio.sleep((7 - index) * 0.02)
            return echo(text, backend)

        results = await scheduler.run(make_chunks(7), transform)

        assert [r.index for r in results] == list(range(7))
        assert [r.success for r in results] == [True, True, True, True, False, True, True]
        assert results[4].error_kind == ErrorKind.EXHAUSTED
        assert observer.resolved_indices == [2, 1, 0, 4, 5, 3, 6]
        assert [e.completed for e in observer.events] == [1, 2, 3, 4, 5, 6, 7]
        # One delay between consecutive groups
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_at_most_parallelism_in_flight(self):
        policy = RetryPolicy(parallelism=3, mode=SchedulingMode.PARALLEL)
        scheduler, _ = make_scheduler(policy)
        in_flight = 0
        peak = 0

        async def transform(text: str, backend: str) -> TransformOutput:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return echo(text, backend)

        results = await scheduler.run(make_chunks(8), transform)

        assert peak == 3
        assert len(results) == 8

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_siblings_or_later_groups(self):
        policy = RetryPolicy(
            max_retries=0,
            parallelism=2,
            auto_continue_on_failure=False,
            mode=SchedulingMode.PARALLEL,
        )
        scheduler, _ = make_scheduler(policy)

        async def transform(text: str, backend: str) -> TransformOutput:
            if index_of(text) == 0:
                raise ServerError("down")
            return echo(text, backend)

        results = await scheduler.run(make_chunks(4), transform)

        assert [r.success for r in results] == [False, True, True, True]

    @pytest.mark.asyncio
    async def test_auth_error_aborts_group_and_run(self):
        observer = InMemoryObserver()
        policy = RetryPolicy(parallelism=3, mode=SchedulingMode.PARALLEL)
        scheduler, _ = make_scheduler(policy, observer)
        cancelled: list[int] = []
        seen: list[int] = []

        async def transform(text: str, backend: str) -> TransformOutput:
            index = index_of(text)
            seen.append(index)
            if index == 1:
                raise AuthError("API key invalid")
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                cancelled.append(index)
                raise
            return echo(text, backend)

        with pytest.raises(AuthError):
            await scheduler.run(make_chunks(6), transform)

        assert sorted(seen) == [0, 1, 2]
        assert sorted(cancelled) == [0, 2]
        assert observer.resolved_indices == [1]


class TestSchedulerCancellation:
    """Test cancellation handling."""

    @pytest.mark.asyncio
    async def test_cancel_between_chunks_keeps_resolved_results(self):
        token = CancellationToken()
        scheduler, _ = make_scheduler(RetryPolicy())

        async def transform(text: str, backend: str) -> TransformOutput:
            if index_of(text) == 1:
                token.cancel("stopped by user")
            return echo(text, backend)

        with pytest.raises(RunCancelledError) as exc_info:
            await scheduler.run(make_chunks(5), transform, token=token)

        results = exc_info.value.results
        assert [r.index for r in results] == [0, 1, 2, 3, 4]
        assert [r.success for r in results] == [True, True, False, False, False]
        assert all(r.error_kind == ErrorKind.CANCELLED for r in results[2:])

    @pytest.mark.asyncio
    async def test_cancel_interrupts_in_flight_call(self):
        token = CancellationToken()
        scheduler, _ = make_scheduler(RetryPolicy(parallelism=2, mode=SchedulingMode.PARALLEL))
        interrupted: list[int] = []

        async def transform(text: str, backend: str) -> TransformOutput:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                interrupted.append(index_of(text))
                raise
            return echo(text, backend)

        asyncio.get_running_loop().call_later(0.02, token.cancel)

        with pytest.raises(RunCancelledError) as exc_info:
            await scheduler.run(make_chunks(4), transform, token=token)

        assert sorted(interrupted) == [0, 1]
        assert len(exc_info.value.results) == 4
        assert all(r.error_kind == ErrorKind.CANCELLED for r in exc_info.value.results)

    def test_rejects_invalid_parallelism(self):
        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(parallelism=0))
        with pytest.raises(ValueError, match="parallelism"):
            BatchScheduler(orchestrator)
