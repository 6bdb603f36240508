"""Batch scheduling of chunk transformations.

The BatchScheduler runs the RetryOrchestrator across every chunk of a run,
either strictly one at a time or in fixed-size concurrent groups, and
collects exactly one ChunkResult per chunk in input order.

Scheduling Modes:
    - sequential: one chunk outstanding at a time, ``rate_limit_delay``
      between chunks. A failed chunk aborts the run unless
      ``auto_continue_on_failure`` is set.
    - parallel: groups of ``parallelism`` chunks started together; the whole
      group resolves before ``rate_limit_delay`` and the next group. A failed
      chunk never affects its siblings.

In both modes an AuthError aborts the run and a cancelled token raises
RunCancelledError carrying every result resolved so far.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from time import perf_counter

from ..core.cancellation import CancellationToken
from ..core.enums import ErrorKind, SchedulingMode
from ..core.exceptions import AuthError, ExhaustedBackendsError, RunCancelledError, classify_error
from ..models import Chunk, ChunkResult, ProgressEvent, TransformOutput
from .chunking.definitions import RetryPolicy
from .chunking.telemetry import log_batch_complete, log_chunk_completed, log_chunk_error
from .observers import ProgressObserver, notify
from .retry import RetryOrchestrator, Sleep

logger = logging.getLogger(__name__)

ChunkTransform = Callable[[str, str], Awaitable[TransformOutput]]


@dataclass
class _RunState:
    """Result slots and completion count for one run.

    Each task writes only its own slot, so concurrent tasks in a group never
    contend.
    """

    chunks: Sequence[Chunk]
    observer: ProgressObserver | None
    results: list[ChunkResult | None] = field(init=False)
    completed: int = 0

    def __post_init__(self) -> None:
        self.results = [None] * len(self.chunks)

    def record(self, position: int, result: ChunkResult) -> None:
        self.results[position] = result
        self.completed += 1
        notify(
            self.observer,
            ProgressEvent.chunk_resolved(
                chunk_index=result.index,
                completed=self.completed,
                total=len(self.chunks),
                backend_used=result.backend_used,
                success=result.success,
                error_message=result.error_message,
            ),
        )

    def finalize_cancelled(self) -> list[ChunkResult]:
        """Fill unresolved slots with cancelled failures."""
        return [
            result
            if result is not None
            else ChunkResult.failed(
                chunk.index,
                "Cancelled before completion",
                ErrorKind.CANCELLED,
            )
            for chunk, result in zip(self.chunks, self.results, strict=True)
        ]


class BatchScheduler:
    """Runs chunk transformations sequentially or in bounded-parallel groups."""

    def __init__(
        self,
        orchestrator: RetryOrchestrator,
        policy: RetryPolicy | None = None,
        *,
        observer: ProgressObserver | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize batch scheduler.

        Args:
            orchestrator: Retry orchestrator used for every chunk
            policy: Scheduling policy (defaults to the orchestrator's policy)
            observer: Optional progress observer
            sleep: Delay coroutine (defaults to asyncio.sleep)
        """
        self._orchestrator = orchestrator
        self._policy = policy or orchestrator.policy
        self._observer = observer
        self._sleep = sleep or asyncio.sleep

        if self._policy.parallelism < 1:
            raise ValueError("parallelism must be at least 1")

    async def run(
        self,
        chunks: Sequence[Chunk],
        transform: ChunkTransform,
        *,
        token: CancellationToken | None = None,
    ) -> list[ChunkResult]:
        """Transform every chunk.

        Args:
            chunks: Chunks in input order
            transform: Async function ``(chunk_text, backend_id) -> TransformOutput``
            token: Cancellation token for the run

        Returns:
            One ChunkResult per chunk, in input order

        Raises:
            AuthError: If any backend rejects the credentials
            ExhaustedBackendsError: Sequential mode without auto-continue,
                when a chunk fails
            RunCancelledError: If the token is cancelled (carries results)
        """
        if not chunks:
            return []

        token = token or CancellationToken()
        state = _RunState(chunks=chunks, observer=self._observer)
        start = perf_counter()

        try:
            if self._policy.mode == SchedulingMode.PARALLEL:
                await self._run_parallel(state, transform, token)
            else:
                await self._run_sequential(state, transform, token)
        except RunCancelledError as e:
            results = state.finalize_cancelled()
            logger.warning(
                "batch_cancelled",
                extra={
                    "resolved": sum(1 for r in state.results if r is not None),
                    "total_chunks": len(chunks),
                },
            )
            raise RunCancelledError(str(e), results=results) from e

        results = [r for r in state.results if r is not None]
        log_batch_complete(
            results=results,
            mode=self._policy.mode.value,
            total_latency_ms=(perf_counter() - start) * 1000.0,
        )
        return results

    async def _run_sequential(
        self,
        state: _RunState,
        transform: ChunkTransform,
        token: CancellationToken,
    ) -> None:
        last = len(state.chunks) - 1
        for position, chunk in enumerate(state.chunks):
            # Cancellation takes effect before the next chunk starts
            token.raise_if_cancelled()
            try:
                result = await self._transform_chunk(chunk, transform, token)
            except RunCancelledError:
                raise
            except Exception as e:
                state.record(position, self._failure(chunk, e))
                if isinstance(e, AuthError) or not self._policy.auto_continue_on_failure:
                    raise
            else:
                state.record(position, result)

            if position < last:
                await token.guard(self._sleep(self._policy.rate_limit_delay))

    async def _run_parallel(
        self,
        state: _RunState,
        transform: ChunkTransform,
        token: CancellationToken,
    ) -> None:
        size = self._policy.parallelism
        total = len(state.chunks)

        for group_start in range(0, total, size):
            token.raise_if_cancelled()
            positions = range(group_start, min(group_start + size, total))
            tasks = [
                asyncio.create_task(self._settle(state, position, transform, token))
                for position in positions
            ]
            try:
                await asyncio.gather(*tasks)
            except (AuthError, RunCancelledError):
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

            if group_start + size < total:
                await token.guard(self._sleep(self._policy.rate_limit_delay))

    async def _settle(
        self,
        state: _RunState,
        position: int,
        transform: ChunkTransform,
        token: CancellationToken,
    ) -> None:
        """Resolve one chunk inside a parallel group, tolerating its failure."""
        chunk = state.chunks[position]
        try:
            result = await self._transform_chunk(chunk, transform, token)
        except RunCancelledError:
            raise
        except Exception as e:
            state.record(position, self._failure(chunk, e))
            if isinstance(e, AuthError):
                raise
        else:
            state.record(position, result)

    async def _transform_chunk(
        self,
        chunk: Chunk,
        transform: ChunkTransform,
        token: CancellationToken,
    ) -> ChunkResult:
        attempts = 0
        chunk_start = perf_counter()

        async def attempt(backend: str) -> TransformOutput:
            nonlocal attempts
            attempts += 1
            return await transform(chunk.text, backend)

        output = await self._orchestrator.execute(attempt, chunk.index, token=token)

        log_chunk_completed(
            chunk_index=chunk.index,
            backend=output.backend,
            attempts=attempts,
            output_chars=len(output.text),
            latency_ms=(perf_counter() - chunk_start) * 1000.0,
        )
        return ChunkResult.succeeded(chunk.index, output, attempts=attempts)

    @staticmethod
    def _failure(chunk: Chunk, error: Exception) -> ChunkResult:
        log_chunk_error(
            chunk_index=chunk.index,
            error_type=type(error).__name__,
            error_message=str(error),
        )
        attempts = error.attempts if isinstance(error, ExhaustedBackendsError) else 0
        return ChunkResult.failed(
            chunk.index,
            str(error) or type(error).__name__,
            classify_error(error),
            attempts=attempts,
        )
