"""HTTP client helper.

Failures are classified here, where they originate: callers receive a
BackendError subclass with the right ``kind`` instead of a raw aiohttp error.
"""

from typing import Any, Dict, Optional

import aiohttp

from ..core.exceptions import (
    AuthError,
    BackendError,
    RateLimitError,
    ServerError,
    TransformTimeoutError,
)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a ``Retry-After`` header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def error_for_status(
    status: int,
    message: str,
    *,
    backend: Optional[str] = None,
    retry_after: Optional[float] = None,
) -> BackendError:
    """Map an HTTP status to the matching BackendError subclass."""
    if status in (401, 403):
        return AuthError(message, backend=backend, status_code=status)
    if status == 429:
        return RateLimitError(message, backend=backend, retry_after=retry_after)
    if status >= 500:
        return ServerError(message, backend=backend, status_code=status)
    return BackendError(message, backend=backend, status_code=status)


class HTTPClient:
    """Async HTTP client wrapper."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 60.0) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def post(
        self,
        url: str,
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        *,
        backend: Optional[str] = None,
    ) -> Dict[str, Any]:
        """POST request returning the decoded JSON body.

        Raises:
            AuthError: On 401/403
            RateLimitError: On 429, with the Retry-After hint
            ServerError: On 5xx or a dropped connection
            TransformTimeoutError: When the client timeout expires
            BackendError: On any other non-2xx status
        """
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}{url}"

        try:
            async with self.session.post(url, json=json_body, headers=headers) as response:
                if response.status >= 400:
                    message = await self._error_message(response)
                    raise error_for_status(
                        response.status,
                        message,
                        backend=backend,
                        retry_after=parse_retry_after(response.headers.get("Retry-After")),
                    )
                return await response.json()
        except TimeoutError as e:
            raise TransformTimeoutError("Request timeout", backend=backend) from e
        except aiohttp.ClientConnectionError as e:
            raise ServerError(f"Connection failed: {e}", backend=backend) from e

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        """Extract ``error.message`` from a JSON error body, if any."""
        fallback = f"API error: {response.status} {response.reason or ''}".strip()
        try:
            payload = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return fallback
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return fallback

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HTTPClient":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
