"""Core components."""

from .cancellation import CancellationToken
from .enums import ElementType, ErrorKind, SchedulingMode, SpeechMarkup, Stage
from .exceptions import (
    AuthError,
    BackendError,
    ExhaustedBackendsError,
    RateLimitError,
    RunCancelledError,
    ServerError,
    TransformError,
    TransformTimeoutError,
    classify_error,
)

__all__ = [
    "CancellationToken",
    "ElementType",
    "ErrorKind",
    "SchedulingMode",
    "SpeechMarkup",
    "Stage",
    "TransformError",
    "BackendError",
    "AuthError",
    "RateLimitError",
    "ServerError",
    "TransformTimeoutError",
    "ExhaustedBackendsError",
    "RunCancelledError",
    "classify_error",
]
