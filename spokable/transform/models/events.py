"""Progress events emitted to observers."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Stage


@dataclass(frozen=True)
class ProgressEvent:
    """Structured progress notification.

    ``chunk_index`` is None for stage-level events (split, reconcile,
    complete). ``success`` is None unless the event reports a resolved chunk.
    """

    stage: Stage
    completed: int
    total: int
    chunk_index: int | None = None
    backend_used: str | None = None
    success: bool | None = None
    error_message: str | None = None

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.completed / self.total * 100.0

    @classmethod
    def chunk_resolved(
        cls,
        *,
        chunk_index: int,
        completed: int,
        total: int,
        backend_used: str | None,
        success: bool,
        error_message: str | None = None,
    ) -> ProgressEvent:
        return cls(
            stage=Stage.TRANSFORM,
            completed=completed,
            total=total,
            chunk_index=chunk_index,
            backend_used=backend_used,
            success=success,
            error_message=error_message,
        )

    @classmethod
    def stage_reached(cls, stage: Stage, completed: int = 0, total: int = 0) -> ProgressEvent:
        return cls(stage=stage, completed=completed, total=total)
