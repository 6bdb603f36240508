"""Progress observers.

The scheduler and pipeline report progress to an injected observer instead
of a global event bus. Any object with an ``on_chunk_resolved`` method works.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from ..models import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressObserver(Protocol):
    """Receives progress events.

    Called synchronously from the event loop; implementations must not block.
    """

    def on_chunk_resolved(self, event: ProgressEvent) -> None: ...


class InMemoryObserver:
    """Keeps every event in a list."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def on_chunk_resolved(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def resolved_indices(self) -> list[int]:
        """Chunk indices in the order they resolved."""
        return [e.chunk_index for e in self.events if e.chunk_index is not None]


class LoggingObserver:
    """Writes each event as a structured log record."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def on_chunk_resolved(self, event: ProgressEvent) -> None:
        self._log.info(
            "progress",
            extra={
                "stage": event.stage.value,
                "chunk_index": event.chunk_index,
                "completed": event.completed,
                "total": event.total,
                "percent": round(event.percent, 1),
                "backend_used": event.backend_used,
                "success": event.success,
            },
        )


class CallbackObserver:
    """Adapts a ``(completed, total, event)`` callback to the observer protocol.

    Only chunk-level events are forwarded.
    """

    def __init__(self, callback: Callable[[int, int, ProgressEvent], None]) -> None:
        self._callback = callback

    def on_chunk_resolved(self, event: ProgressEvent) -> None:
        if event.chunk_index is None:
            return
        self._callback(event.completed, event.total, event)


def notify(observer: ProgressObserver | None, event: ProgressEvent) -> None:
    """Deliver ``event``; observer failures are logged and never break a run."""
    if observer is None:
        return
    try:
        observer.on_chunk_resolved(event)
    except Exception as e:
        logger.error(
            f"Progress observer {observer.__class__.__name__} failed: {e}",
            exc_info=True,
        )
