"""Unit tests for RetryOrchestrator."""

from __future__ import annotations

import asyncio

import pytest

from spokable.transform.core import (
    AuthError,
    CancellationToken,
    ExhaustedBackendsError,
    RateLimitError,
    RunCancelledError,
    ServerError,
    TransformTimeoutError,
)
from spokable.transform.models import TransformOutput
from spokable.transform.runtime import RetryOrchestrator, RetryPolicy


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedTransform:
    """Fails ``failures[backend]`` times per backend, then succeeds."""

    def __init__(self, failures: dict[str, list[Exception]] | None = None) -> None:
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.calls: list[str] = []

    async def __call__(self, backend: str) -> TransformOutput:
        self.calls.append(backend)
        pending = self.failures.get(backend)
        if pending:
            raise pending.pop(0)
        return TransformOutput(text=f"done by {backend}", backend=backend)


class TestRetryOrchestrator:
    """Test RetryOrchestrator functionality."""

    def test_requires_backends(self):
        with pytest.raises(ValueError):
            RetryOrchestrator([], RetryPolicy())

    @pytest.mark.asyncio
    async def test_first_attempt_success(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(), sleep=sleep)
        transform = ScriptedTransform()

        output = await orchestrator.execute(transform)

        assert output.text == "done by primary"
        assert transform.calls == ["primary"]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff_then_succeeds(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(
            ["primary", "fallback"],
            RetryPolicy(max_retries=3, base_delay=1.0),
            sleep=sleep,
        )
        transform = ScriptedTransform({"primary": [ServerError("503"), ServerError("503")]})

        output = await orchestrator.execute(transform)

        assert output.backend == "primary"
        assert transform.calls == ["primary"] * 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_auth_error_short_circuits(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(["primary", "fallback"], RetryPolicy(), sleep=sleep)
        transform = ScriptedTransform({"primary": [AuthError("Invalid API key")]})

        with pytest.raises(AuthError):
            await orchestrator.execute(transform)

        assert transform.calls == ["primary"]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_non_retryable_kind_short_circuits(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(["primary", "fallback"], RetryPolicy(), sleep=sleep)
        nested = ExhaustedBackendsError("inner pipeline gave up", chunk_index=0)
        transform = ScriptedTransform({"primary": [nested]})

        with pytest.raises(ExhaustedBackendsError) as exc_info:
            await orchestrator.execute(transform)

        assert exc_info.value is nested
        assert transform.calls == ["primary"]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_falls_back_to_next_backend(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(
            ["primary", "fallback"],
            RetryPolicy(max_retries=1, base_delay=1.0),
            sleep=sleep,
        )
        transform = ScriptedTransform({"primary": [ServerError("down"), ServerError("down")]})

        output = await orchestrator.execute(transform)

        assert output.backend == "fallback"
        assert transform.calls == ["primary", "primary", "fallback"]
        # No delay when switching backends
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_exhausted_after_every_backend(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(
            ["primary", "fallback"],
            RetryPolicy(max_retries=2, base_delay=0.5),
            sleep=sleep,
        )
        last = ServerError("still down")
        errors = [ServerError("down")] * 5 + [last]
        transform = ScriptedTransform({"primary": errors[:3], "fallback": errors[3:]})

        with pytest.raises(ExhaustedBackendsError) as exc_info:
            await orchestrator.execute(transform, chunk_index=4)

        error = exc_info.value
        assert error.chunk_index == 4
        assert error.attempts == 6
        assert error.last_error is last
        assert error.__cause__ is last
        assert "still down" in str(error)
        assert transform.calls == ["primary"] * 3 + ["fallback"] * 3
        assert sleep.delays == [0.5, 1.0, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_rate_limit_retry_after_honoured(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(base_delay=1.0), sleep=sleep)
        transform = ScriptedTransform(
            {"primary": [RateLimitError("quota", retry_after=7.5), RateLimitError("quota")]}
        )

        await orchestrator.execute(transform)

        assert sleep.delays == [7.5, 2.0]

    @pytest.mark.asyncio
    async def test_unclassified_errors_are_retried(self):
        sleep = RecordingSleep()
        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(), sleep=sleep)
        transform = ScriptedTransform({"primary": [ValueError("Invalid response format")]})

        output = await orchestrator.execute(transform)

        assert output.backend == "primary"
        assert len(transform.calls) == 2

    @pytest.mark.asyncio
    async def test_request_timeout_classified(self):
        orchestrator = RetryOrchestrator(
            ["primary"],
            RetryPolicy(max_retries=0, request_timeout=0.01),
            sleep=RecordingSleep(),
        )

        async def hang(backend: str) -> TransformOutput:
            await asyncio.sleep(5)
            return TransformOutput(text="late", backend=backend)

        with pytest.raises(ExhaustedBackendsError) as exc_info:
            await orchestrator.execute(hang)

        assert isinstance(exc_info.value.last_error, TransformTimeoutError)
        assert exc_info.value.attempts == 1

    @pytest.mark.asyncio
    async def test_cancelled_token_prevents_attempts(self):
        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(), sleep=RecordingSleep())
        transform = ScriptedTransform()
        token = CancellationToken()
        token.cancel("user stop")

        with pytest.raises(RunCancelledError, match="user stop"):
            await orchestrator.execute(transform, token=token)

        assert transform.calls == []

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retries(self):
        token = CancellationToken()

        async def cancelling_sleep(delay: float) -> None:
            token.cancel()

        orchestrator = RetryOrchestrator(["primary"], RetryPolicy(), sleep=cancelling_sleep)
        transform = ScriptedTransform({"primary": [ServerError("down")] * 4})

        with pytest.raises(RunCancelledError):
            await orchestrator.execute(transform, token=token)

        assert transform.calls == ["primary"]
