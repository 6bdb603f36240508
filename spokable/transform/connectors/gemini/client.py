"""Gemini transformation backend.

GeminiTransformClient is a transformation callback: calling it with a chunk's
text and a model id rewrites the chunk through the ``generateContent`` REST
endpoint. HTTP failures surface as classified BackendError subclasses.
"""

from __future__ import annotations

import logging
from typing import Any

from ...core.exceptions import AuthError
from ...models import TransformOutput
from ...prompts import PromptTemplate
from ...utils.http import HTTPClient
from .config import API_KEY_HEADER, BASE_URL, GenerationSettings

logger = logging.getLogger(__name__)


def extract_text(payload: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class GeminiTransformClient:
    """Rewrites chunks with a hosted Gemini model."""

    def __init__(
        self,
        api_key: str,
        *,
        prompt: PromptTemplate | None = None,
        generation: GenerationSettings | None = None,
        base_url: str = BASE_URL,
        timeout: float = 60.0,
        http: HTTPClient | None = None,
        log_payloads: bool = False,
    ) -> None:
        """Initialize Gemini client.

        Args:
            api_key: Google AI Studio API key
            prompt: Prompt template applied to every chunk
            generation: Sampling parameters
            base_url: Models endpoint root
            timeout: HTTP timeout in seconds
            http: Shared HTTP client (created if omitted)
            log_payloads: Log truncated request/response bodies at debug level
        """
        self._api_key = api_key
        self._prompt = prompt or PromptTemplate()
        self._generation = generation or GenerationSettings()
        self._base_url = base_url.rstrip("/")
        self._http = http or HTTPClient(timeout=timeout)
        self._log_payloads = log_payloads

    async def __call__(self, chunk_text: str, backend: str) -> TransformOutput:
        return await self.transform(chunk_text, backend)

    async def transform(self, chunk_text: str, backend: str, kind: str = "text") -> TransformOutput:
        """Transform one chunk with model ``backend``.

        Raises:
            AuthError: Missing API key or rejected credentials
            RateLimitError: Quota exceeded (with Retry-After when sent)
            ServerError: 5xx or connection failure
            TransformTimeoutError: Request timed out
            BackendError: Any other API error
        """
        if not self._api_key:
            raise AuthError(
                "API key not configured. Please add your key in Settings.",
                backend=backend,
            )

        body = {
            "contents": [{"parts": [{"text": self._prompt.render(chunk_text, kind)}]}],
            "generationConfig": self._generation.to_payload(),
        }
        if self._log_payloads:
            logger.debug(f"Request to {backend}: {str(body)[:200]}...")

        payload = await self._http.post(
            f"{self._base_url}/{backend}:generateContent",
            json_body=body,
            headers={"Content-Type": "application/json", API_KEY_HEADER: self._api_key},
            backend=backend,
        )
        if self._log_payloads:
            logger.debug(f"Response from {backend}: {str(payload)[:200]}...")

        return TransformOutput(
            text=extract_text(payload),
            backend=backend,
            usage=payload.get("usageMetadata") or {},
        )

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> GeminiTransformClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
