"""Pipeline configuration.

One explicit, immutable value passed to the pipeline at construction. The
defaults match the hosted Gemini setup; every field can be overridden from
the environment (``SPOKABLE_<FIELD_NAME>``), optionally through a ``.env``
file.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.enums import SchedulingMode, SpeechMarkup
from .runtime.chunking.definitions import ChunkPolicy, RetryPolicy

ENV_PREFIX = "SPOKABLE_"

DEFAULT_PRIMARY_BACKEND = "gemini-1.5-flash"
DEFAULT_FALLBACK_BACKENDS = ("gemini-1.5-pro", "gemini-1.5-flash-8b")


class PipelineConfig(BaseModel):
    """Settings for one transformation run.

    Delays and timeouts are in seconds.
    """

    batch_size_tokens: int = Field(8000, gt=0)
    overlap_size_tokens: int = Field(200, ge=0)
    max_retries: int = Field(3, ge=0)
    base_retry_delay: float = Field(1.0, ge=0)
    rate_limit_delay: float = Field(0.5, ge=0)
    request_timeout: float | None = Field(60.0, gt=0)
    parallelism: int = Field(3, ge=1)
    mode: SchedulingMode = SchedulingMode.SEQUENTIAL
    auto_continue_on_failure: bool = True
    primary_backend: str = Field(DEFAULT_PRIMARY_BACKEND, min_length=1)
    fallback_backends: tuple[str, ...] = DEFAULT_FALLBACK_BACKENDS
    speech_markup: SpeechMarkup = SpeechMarkup.NONE
    gap_marker: str | None = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("fallback_backends", mode="before")
    @classmethod
    def split_backends(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a sequence."""
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return v

    @property
    def backends(self) -> tuple[str, ...]:
        """Primary backend followed by fallbacks, without duplicates."""
        ordered: list[str] = []
        for backend in (self.primary_backend, *self.fallback_backends):
            if backend and backend not in ordered:
                ordered.append(backend)
        return tuple(ordered)

    @property
    def chunk_policy(self) -> ChunkPolicy:
        return ChunkPolicy(
            batch_size=self.batch_size_tokens,
            overlap_size=self.overlap_size_tokens,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.base_retry_delay,
            rate_limit_delay=self.rate_limit_delay,
            parallelism=self.parallelism,
            auto_continue_on_failure=self.auto_continue_on_failure,
            request_timeout=self.request_timeout,
            mode=self.mode,
        )

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> PipelineConfig:
        """Build a config from ``<prefix><FIELD>`` environment variables.

        Args:
            prefix: Environment variable prefix
            **overrides: Explicit values that win over the environment

        Returns:
            Validated PipelineConfig
        """
        load_dotenv()
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls(**values)
