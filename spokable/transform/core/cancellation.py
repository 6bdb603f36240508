"""Cooperative cancellation for in-flight runs.

A single CancellationToken is threaded through the scheduler and the retry
orchestrator. It is checked before each chunk starts and raced against every
suspension point (transformation calls and delays), so a cancel request
interrupts a run at the next await without killing anything forcibly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from .exceptions import RunCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Shared, one-way cancellation flag for a single run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Idempotent; the first reason wins."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.info("run_cancel_requested", extra={"reason": reason})

    def raise_if_cancelled(self) -> None:
        """Raise RunCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise RunCancelledError(self._reason or "Run cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless cancellation arrives first.

        On cancellation the in-flight task receives ``Task.cancel()`` and
        RunCancelledError is raised. A result that is ready at the same time
        as the cancel request is still returned.

        Raises:
            RunCancelledError: If the token is cancelled before or during the wait
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise RunCancelledError(self._reason or "Run cancelled")
