"""Retry orchestration across an ordered list of backends.

The RetryOrchestrator drives one chunk's transformation against the primary
backend first and the fallbacks after it, retrying each backend a bounded
number of times with exponential backoff.

Policy per failure kind:
    - AUTH / EXHAUSTED: not retryable, re-raised immediately with no further
      attempts or backends
    - RATE_LIMIT: retried, honouring the server's retry-after hint if present
    - SERVER / TIMEOUT / OTHER: retried with exponential backoff
    - Last attempt on a backend: move on to the next backend
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from ..core.cancellation import CancellationToken
from ..core.exceptions import (
    ExhaustedBackendsError,
    RateLimitError,
    RunCancelledError,
    TransformTimeoutError,
    classify_error,
)
from ..models import TransformOutput
from .chunking.definitions import RetryPolicy
from .chunking.telemetry import (
    log_backend_exhausted,
    log_chunk_attempt,
    log_chunk_error,
    log_chunk_retry,
)

logger = logging.getLogger(__name__)

BackendTransform = Callable[[str], Awaitable[TransformOutput]]
Sleep = Callable[[float], Awaitable[None]]


class RetryOrchestrator:
    """Executes a transformation with retries and backend fallback."""

    def __init__(
        self,
        backends: Sequence[str],
        policy: RetryPolicy,
        *,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize retry orchestrator.

        Args:
            backends: Backend identifiers, primary first
            policy: Retry policy for the run
            sleep: Delay coroutine (defaults to asyncio.sleep)
        """
        if not backends:
            raise ValueError("RetryOrchestrator requires at least one backend")
        self._backends = tuple(backends)
        self._policy = policy
        self._sleep = sleep or asyncio.sleep

    @property
    def backends(self) -> tuple[str, ...]:
        return self._backends

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        transform: BackendTransform,
        chunk_index: int = 0,
        *,
        token: CancellationToken | None = None,
    ) -> TransformOutput:
        """Run ``transform`` until one attempt succeeds.

        Args:
            transform: Async function taking a backend id
            chunk_index: Index of the chunk, for logging and errors
            token: Cancellation token checked at every suspension point

        Returns:
            Output of the first successful attempt

        Raises:
            AuthError: On the first authentication failure (any non-retryable
                error from ``transform`` is re-raised the same way)
            ExhaustedBackendsError: If every backend ran out of attempts
            RunCancelledError: If the token is cancelled
        """
        token = token or CancellationToken()
        last_error: Exception | None = None
        attempts = 0

        for backend in self._backends:
            # Attempt counter resets for each backend
            for attempt in range(self._policy.max_retries + 1):
                token.raise_if_cancelled()
                attempts += 1
                log_chunk_attempt(chunk_index=chunk_index, backend=backend, attempt=attempt + 1)

                try:
                    return await token.guard(self._call(transform, backend))
                except RunCancelledError:
                    raise
                except Exception as e:
                    last_error = e
                    kind = classify_error(e)

                    if not kind.retryable:
                        log_chunk_error(
                            chunk_index=chunk_index,
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        raise

                    if attempt == self._policy.max_retries:
                        log_backend_exhausted(
                            chunk_index=chunk_index,
                            backend=backend,
                            attempts=attempt + 1,
                        )
                        break

                    delay = self._retry_delay(e, attempt)
                    log_chunk_retry(
                        chunk_index=chunk_index,
                        backend=backend,
                        attempt=attempt + 1,
                        error_kind=kind.value,
                        error_message=str(e),
                        delay=delay,
                    )
                    await token.guard(self._sleep(delay))

        raise ExhaustedBackendsError(
            f"All retry attempts failed for chunk {chunk_index}: {last_error or 'unknown error'}",
            chunk_index=chunk_index,
            last_error=last_error,
            attempts=attempts,
        ) from last_error

    async def _call(self, transform: BackendTransform, backend: str) -> TransformOutput:
        timeout = self._policy.request_timeout
        try:
            return await asyncio.wait_for(transform(backend), timeout=timeout)
        except TimeoutError as e:
            raise TransformTimeoutError(
                f"Request to {backend} timed out after {timeout}s",
                backend=backend,
            ) from e

    def _retry_delay(self, error: Exception, attempt: int) -> float:
        """Delay before retrying the same backend after ``attempt`` (zero-based)."""
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return error.retry_after
        return self._policy.backoff_delay(attempt)
