"""HTTP boundary to the campus backend.

ApiTransport turns every call into either an ApiResponse (2xx) or one of the
classified errors in errors.py, so fallback chains only ever deal with
TransientError / PermanentError.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from src.campus_client.config import ClientConfig
from src.campus_client.errors import (
    ClientStatusError,
    ParseError,
    ServerError,
    TransportError,
)
from src.campus_client.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """A successful backend response."""

    status: int
    data: Any


def _is_retryable_status(status: int) -> bool:
    return status >= 500 or status == 429


class ApiTransport:
    """Thin async wrapper over httpx.AsyncClient with error classification.

    Each request carries its own timeout; a timed-out request raises
    TransportError exactly like an unreachable host.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize ApiTransport.

        Args:
            base_url: Backend base URL (e.g., http://localhost:8080/api).
            token: Optional bearer token added to every request.
            timeout: Per-request timeout in seconds.
            client: Pre-built client (tests pass one with httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=timeout
        )

    @classmethod
    def from_config(cls, config: ClientConfig) -> "ApiTransport":
        return cls(
            config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout_seconds,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Perform one request.

        Returns:
            ApiResponse with the decoded body (JSON, text, or None when empty).

        Raises:
            TransportError: No response (connection failure or timeout).
            ServerError: 5xx or 429 response.
            ClientStatusError: Any other non-2xx response.
            ParseError: A JSON response whose body doesn't decode.
        """
        log.debug("http_request", method=method, path=path)
        try:
            response = await self._client.request(
                method, path, json=json, params=params, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        status = response.status_code
        if not 200 <= status < 300:
            log.debug("http_error_status", method=method, path=path, status=status)
            if _is_retryable_status(status):
                raise ServerError(status, f"{method} {path} -> {status}")
            raise ClientStatusError(status, f"{method} {path} -> {status}")

        return ApiResponse(status=status, data=_decode(response))

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("GET", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("PUT", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("POST", path, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Malformed JSON body: {e}") from e
    return response.text
