"""Gemini connector implementation."""

from .client import GeminiTransformClient, extract_text
from .config import AVAILABLE_MODELS, BASE_URL, GenerationSettings, ModelInfo

__all__ = [
    "AVAILABLE_MODELS",
    "BASE_URL",
    "GeminiTransformClient",
    "GenerationSettings",
    "ModelInfo",
    "extract_text",
]
