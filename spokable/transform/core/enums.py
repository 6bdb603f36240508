"""Core enumerations shared across the transformation pipeline.

Architecture:
    String enums keep values readable in logs and configuration files and
    allow construction straight from environment variables or JSON.

Key Types:
    - ErrorKind: Discriminant carried by every backend failure
    - SchedulingMode: Sequential vs bounded-parallel batch execution
    - ElementType: Structural element types for structure-aware chunking
    - Stage: Pipeline stages reported to progress observers
    - SpeechMarkup: Optional post-processing of the reconciled text
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed transformation attempt.

    The kind is set where the error originates (HTTP layer, connector) and
    read downstream by the retry orchestrator.
    """

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    TIMEOUT = "timeout"
    OTHER = "other"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"

    @property
    def retryable(self) -> bool:
        """Whether another attempt may succeed."""
        return self not in (ErrorKind.AUTH, ErrorKind.EXHAUSTED, ErrorKind.CANCELLED)


class SchedulingMode(str, Enum):
    """Batch scheduling discipline, selected per run."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class ElementType(str, Enum):
    """Typed structural elements accepted by the structure-aware planner."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    TABLE = "table"
    FIGURE = "figure"
    MATH = "math"
    OTHER = "other"


class Stage(str, Enum):
    """Pipeline stages reported in progress events."""

    SPLIT = "split"
    TRANSFORM = "transform"
    RECONCILE = "reconcile"
    COMPLETE = "complete"


class SpeechMarkup(str, Enum):
    """Post-processing applied to the reconciled text."""

    NONE = "none"
    PAUSES = "pauses"
    SSML = "ssml"
