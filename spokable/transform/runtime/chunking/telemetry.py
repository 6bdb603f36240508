"""Structured logging for chunk lifecycle events.

This module provides telemetry hooks for planning, transforming and
reconciling chunks, emitting structured log records for observability.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ...models import ChunkResult

logger = logging.getLogger(__name__)


def log_chunk_plan(
    *,
    total_chunks: int,
    total_tokens: int,
    batch_size: int,
    overlap_size: int,
    structured: bool = False,
) -> None:
    """Log chunk plan creation.

    Args:
        total_chunks: Number of chunks planned
        total_tokens: Token estimate of the whole input
        batch_size: Token budget per chunk
        overlap_size: Token budget for overlap carry
        structured: Whether the structure-aware planner was used
    """
    logger.info(
        "chunk_plan_created",
        extra={
            "total_chunks": total_chunks,
            "total_tokens": total_tokens,
            "batch_size": batch_size,
            "overlap_size": overlap_size,
            "structured": structured,
        },
    )


def log_chunk_attempt(*, chunk_index: int, backend: str, attempt: int) -> None:
    """Log the start of one transformation attempt (attempt is 1-based)."""
    logger.debug(
        "chunk_attempt",
        extra={"chunk_index": chunk_index, "backend": backend, "attempt": attempt},
    )


def log_chunk_retry(
    *,
    chunk_index: int,
    backend: str,
    attempt: int,
    error_kind: str,
    error_message: str,
    delay: float,
) -> None:
    """Log a failed attempt that will be retried after ``delay`` seconds."""
    logger.warning(
        "chunk_retry_scheduled",
        extra={
            "chunk_index": chunk_index,
            "backend": backend,
            "attempt": attempt,
            "error_kind": error_kind,
            "error_message": error_message,
            "delay": delay,
        },
    )


def log_backend_exhausted(*, chunk_index: int, backend: str, attempts: int) -> None:
    """Log that a backend ran out of attempts for a chunk."""
    logger.warning(
        "chunk_backend_exhausted",
        extra={"chunk_index": chunk_index, "backend": backend, "attempts": attempts},
    )


def log_chunk_completed(
    *,
    chunk_index: int,
    backend: str,
    attempts: int,
    output_chars: int,
    latency_ms: float | None = None,
) -> None:
    """Log completion of a single chunk.

    Args:
        chunk_index: Zero-based index of the chunk
        backend: Backend that produced the output
        attempts: Total attempts spent across backends
        output_chars: Length of the transformed text
        latency_ms: Latency in milliseconds (optional)
    """
    logger.info(
        "chunk_completed",
        extra={
            "chunk_index": chunk_index,
            "backend": backend,
            "attempts": attempts,
            "output_chars": output_chars,
            "latency_ms": latency_ms,
        },
    )


def log_chunk_error(
    *,
    chunk_index: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log chunk execution error.

    Args:
        chunk_index: Zero-based index of the chunk that failed
        error_type: Type of error (e.g., "AuthError", "ExhaustedBackendsError")
        error_message: Error message
    """
    logger.error(
        "chunk_error",
        extra={
            "chunk_index": chunk_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_batch_complete(
    *,
    results: Sequence[ChunkResult],
    mode: str,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a batch run."""
    failed = [r.index for r in results if not r.success]
    logger.info(
        "batch_complete",
        extra={
            "mode": mode,
            "total_chunks": len(results),
            "succeeded": len(results) - len(failed),
            "failed_indices": failed,
            "total_latency_ms": total_latency_ms,
        },
    )


def log_reconcile(*, pieces: int, overlaps_stripped: int, gaps: int, output_chars: int) -> None:
    """Log overlap reconciliation summary."""
    logger.info(
        "chunks_reconciled",
        extra={
            "pieces": pieces,
            "overlaps_stripped": overlaps_stripped,
            "gaps": gaps,
            "output_chars": output_chars,
        },
    )
