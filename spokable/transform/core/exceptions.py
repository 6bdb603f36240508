"""Custom exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .enums import ErrorKind

if TYPE_CHECKING:
    from ..models import ChunkResult


class TransformError(Exception):
    """Base exception for all library errors."""

    pass


class BackendError(TransformError):
    """Error from an external transformation backend.

    Every subclass pins its ``kind``; the retry orchestrator reads the kind
    instead of inspecting the message.
    """

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.status_code = status_code


class AuthError(BackendError):
    """Credentials rejected. Never retried, aborts the whole run."""

    kind = ErrorKind.AUTH


class RateLimitError(BackendError):
    """Backend rate limit exceeded."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, backend=backend, status_code=429)
        self.retry_after = retry_after


class ServerError(BackendError):
    """Backend-side failure (5xx, dropped connection)."""

    kind = ErrorKind.SERVER


class TransformTimeoutError(BackendError):
    """A transformation call exceeded its configured timeout."""

    kind = ErrorKind.TIMEOUT


class ExhaustedBackendsError(TransformError):
    """Every backend and attempt was spent on one chunk without success."""

    kind = ErrorKind.EXHAUSTED

    def __init__(
        self,
        message: str,
        chunk_index: int,
        last_error: BaseException | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.last_error = last_error
        self.attempts = attempts


class RunCancelledError(TransformError):
    """The run was cancelled through its cancellation token.

    ``results`` holds one entry per chunk: resolved chunks keep their
    outcome, unresolved ones are recorded as cancelled failures.
    """

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str, results: list[ChunkResult] | None = None) -> None:
        super().__init__(message)
        self.results = results or []


def classify_error(error: BaseException) -> ErrorKind:
    """Return the discriminant of ``error``.

    Exceptions raised outside the hierarchy are treated as ``OTHER``.
    """
    if isinstance(error, (BackendError, ExhaustedBackendsError, RunCancelledError)):
        return error.kind
    return ErrorKind.OTHER
