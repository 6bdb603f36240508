"""Chunking layer: splitting documents and reconciling transformed chunks.

Architecture:
    The chunking layer consists of:
    - definitions.py: Policies (ChunkPolicy, RetryPolicy) and the token estimate
    - planners.py: Chunk planning logic (sentence packing, overlap carry,
      structure-aware boundaries)
    - reconciler.py: Overlap detection and reassembly of transformed chunks
    - telemetry.py: Structured logging for the chunk lifecycle
"""

from __future__ import annotations

from .definitions import ChunkPolicy, RetryPolicy, estimate_tokens
from .planners import ChunkPlanner, TextUnit, split_sentences
from .reconciler import OverlapReconciler

__all__ = [
    "ChunkPolicy",
    "RetryPolicy",
    "ChunkPlanner",
    "OverlapReconciler",
    "TextUnit",
    "estimate_tokens",
    "split_sentences",
]
