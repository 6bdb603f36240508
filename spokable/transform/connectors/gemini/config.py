"""Shared Gemini connector constants.

This module centralizes the REST base URL, model catalogue and default
generation parameters so the client can stay small and focused.
"""

from dataclasses import dataclass

BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

API_KEY_HEADER = "x-goog-api-key"


@dataclass(frozen=True)
class ModelInfo:
    """Static description of a hosted model."""

    id: str
    name: str
    description: str
    context_window: int
    max_output: int


AVAILABLE_MODELS = (
    ModelInfo(
        id="gemini-2.0-flash-exp",
        name="Gemini 2.0 Flash (Experimental)",
        description="Fast, multimodal, experimental",
        context_window=1_000_000,
        max_output=8192,
    ),
    ModelInfo(
        id="gemini-1.5-pro",
        name="Gemini 1.5 Pro",
        description="Best reasoning and complex tasks",
        context_window=2_000_000,
        max_output=8192,
    ),
    ModelInfo(
        id="gemini-1.5-flash",
        name="Gemini 1.5 Flash",
        description="Balanced speed and quality",
        context_window=1_000_000,
        max_output=8192,
    ),
    ModelInfo(
        id="gemini-1.5-flash-8b",
        name="Gemini 1.5 Flash-8B",
        description="Fastest, most efficient",
        context_window=1_000_000,
        max_output=8192,
    ),
)

MODELS_BY_ID = {model.id: model for model in AVAILABLE_MODELS}


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling parameters sent as ``generationConfig``."""

    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 2048

    def to_payload(self) -> dict[str, float | int]:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }
