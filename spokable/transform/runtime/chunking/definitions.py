"""Chunking and retry policy definitions.

This module defines the policy values handed to the planner, the retry
orchestrator and the batch scheduler, plus the token estimate every size
decision is based on.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ...core.enums import SchedulingMode

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate transformation cost of ``text``.

    A length-based proxy (``ceil(len / 4)``), not a linguistic tokenizer.
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class ChunkPolicy:
    """Chunking policy for a run.

    Attributes:
        batch_size: Maximum token estimate per chunk
        overlap_size: Maximum token estimate carried from one chunk into the next
        heading_break_ratio: Fill ratio above which a heading starts a new chunk
            (structure-aware planning only)
    """

    batch_size: int
    overlap_size: int = 0
    heading_break_ratio: float = 0.5

    def __post_init__(self) -> None:
        """Validate chunk policy configuration."""
        if self.batch_size <= 0:
            raise ValueError("ChunkPolicy batch_size must be positive")
        if self.overlap_size < 0:
            raise ValueError("ChunkPolicy overlap_size cannot be negative")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry and scheduling policy for a run.

    Attributes:
        max_retries: Retries per backend after the first attempt
        base_delay: Base backoff delay in seconds (doubled per attempt)
        rate_limit_delay: Pause between chunks or groups in seconds
        parallelism: Group size in parallel mode
        auto_continue_on_failure: Record failed chunks and keep going (sequential mode)
        request_timeout: Per-call timeout in seconds (None = no timeout)
        mode: Sequential or bounded-parallel scheduling
    """

    max_retries: int = 3
    base_delay: float = 1.0
    rate_limit_delay: float = 0.5
    parallelism: int = 3
    auto_continue_on_failure: bool = True
    request_timeout: float | None = None
    mode: SchedulingMode = SchedulingMode.SEQUENTIAL

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff for a zero-based attempt number."""
        return self.base_delay * (2**attempt)
