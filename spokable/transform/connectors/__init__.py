"""Transformation backends."""

from .gemini import GeminiTransformClient, GenerationSettings

__all__ = [
    "GeminiTransformClient",
    "GenerationSettings",
]
