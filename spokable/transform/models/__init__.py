"""Data models for the transformation pipeline.

Architecture:
    Pydantic v2 models for values that cross component boundaries (chunks,
    outputs, results) and frozen dataclasses for lightweight internal records
    (progress events). All models are immutable.

Model Categories:
    - Input: Chunk, StructuralElement
    - Output: TransformOutput, ChunkResult, PipelineResult
    - Progress: ProgressEvent
"""

from .chunk import Chunk, StructuralElement
from .events import ProgressEvent
from .results import ChunkResult, PipelineResult, TransformOutput

__all__ = [
    "Chunk",
    "ChunkResult",
    "PipelineResult",
    "ProgressEvent",
    "StructuralElement",
    "TransformOutput",
]
