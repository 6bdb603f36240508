"""Runtime orchestration components."""

from .chunking import ChunkPlanner, ChunkPolicy, OverlapReconciler, RetryPolicy
from .observers import CallbackObserver, InMemoryObserver, LoggingObserver, ProgressObserver
from .retry import RetryOrchestrator
from .scheduler import BatchScheduler

__all__ = [
    "BatchScheduler",
    "CallbackObserver",
    "ChunkPlanner",
    "ChunkPolicy",
    "InMemoryObserver",
    "LoggingObserver",
    "OverlapReconciler",
    "ProgressObserver",
    "RetryOrchestrator",
    "RetryPolicy",
]
