"""Transformation outputs and per-chunk results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.enums import ErrorKind
from .chunk import Chunk


class TransformOutput(BaseModel):
    """What a transformation callback returns for one successful call."""

    text: str
    backend: str = Field(..., min_length=1)
    usage: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class ChunkResult(BaseModel):
    """Outcome for a single chunk, indexed like its source chunk."""

    index: int = Field(..., ge=0)
    success: bool
    output_text: str | None = None
    backend_used: str | None = None
    error_message: str | None = None
    error_kind: ErrorKind | None = None
    attempts: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_outcome(self) -> ChunkResult:
        """Successful results carry text, failed ones carry an error."""
        if self.success and self.output_text is None:
            raise ValueError("successful result requires output_text")
        if not self.success and self.error_message is None:
            raise ValueError("failed result requires error_message")
        return self

    @classmethod
    def succeeded(cls, index: int, output: TransformOutput, attempts: int = 1) -> ChunkResult:
        return cls(
            index=index,
            success=True,
            output_text=output.text,
            backend_used=output.backend,
            attempts=attempts,
        )

    @classmethod
    def failed(
        cls,
        index: int,
        error_message: str,
        error_kind: ErrorKind = ErrorKind.OTHER,
        attempts: int = 0,
    ) -> ChunkResult:
        return cls(
            index=index,
            success=False,
            error_message=error_message,
            error_kind=error_kind,
            attempts=attempts,
        )


class PipelineResult(BaseModel):
    """Final output of a pipeline run."""

    text: str
    chunks: list[Chunk]
    results: list[ChunkResult]

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> list[ChunkResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[ChunkResult]:
        return [r for r in self.results if not r.success]

    @property
    def failed_indices(self) -> list[int]:
        return [r.index for r in self.failed]

    @property
    def is_complete(self) -> bool:
        """True when every chunk was transformed."""
        return not self.failed
