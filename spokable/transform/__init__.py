"""Spokable Transform - chunked, fault-tolerant rewriting of long documents."""

from .config import PipelineConfig
from .connectors import GeminiTransformClient, GenerationSettings
from .core import (
    AuthError,
    BackendError,
    CancellationToken,
    ElementType,
    ErrorKind,
    ExhaustedBackendsError,
    RateLimitError,
    RunCancelledError,
    SchedulingMode,
    ServerError,
    SpeechMarkup,
    Stage,
    TransformError,
    TransformTimeoutError,
    classify_error,
)
from .models import (
    Chunk,
    ChunkResult,
    PipelineResult,
    ProgressEvent,
    StructuralElement,
    TransformOutput,
)
from .pipeline import TransformPipeline
from .prompts import PromptTemplate
from .runtime import (
    BatchScheduler,
    CallbackObserver,
    ChunkPlanner,
    ChunkPolicy,
    InMemoryObserver,
    LoggingObserver,
    OverlapReconciler,
    ProgressObserver,
    RetryOrchestrator,
    RetryPolicy,
)
from .runtime.chunking import estimate_tokens

__all__ = [
    # Pipeline
    "TransformPipeline",
    "PipelineConfig",
    # Components
    "ChunkPlanner",
    "ChunkPolicy",
    "RetryOrchestrator",
    "RetryPolicy",
    "BatchScheduler",
    "OverlapReconciler",
    "estimate_tokens",
    # Observers
    "ProgressObserver",
    "InMemoryObserver",
    "LoggingObserver",
    "CallbackObserver",
    # Models
    "Chunk",
    "ChunkResult",
    "PipelineResult",
    "ProgressEvent",
    "StructuralElement",
    "TransformOutput",
    # Enums
    "ElementType",
    "ErrorKind",
    "SchedulingMode",
    "SpeechMarkup",
    "Stage",
    # Errors
    "TransformError",
    "BackendError",
    "AuthError",
    "RateLimitError",
    "ServerError",
    "TransformTimeoutError",
    "ExhaustedBackendsError",
    "RunCancelledError",
    "classify_error",
    # Cancellation
    "CancellationToken",
    # Backends
    "GeminiTransformClient",
    "GenerationSettings",
    "PromptTemplate",
]
