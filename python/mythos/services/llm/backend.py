"""Backend client capability shared by the gateway and edge variants.

- Async HTTP via a shared httpx.AsyncClient
- No retries inside clients
- No logging of request/response bodies
- Transport and status failures are translated to BackendError in one place
  (_translate_http_error), so both variants fail the same way
- Each client handles Turn → wire format conversion internally

Variants are selected at construction time by ProviderRouter; nothing
downstream inspects the concrete client type.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

import httpx

from mythos.services.llm.errors import (
    BackendError,
    LLMErrorClass,
    MalformedResponseError,
    classify_provider_error,
)
from mythos.services.llm.types import BackendKind, LLMChunk, LLMRequest, Turn

CONNECT_TIMEOUT_S = 10.0


class BackendClient(ABC):
    """One upstream inference API.

    Attributes:
        kind: Which backend this client talks to.
        supports_streaming: Whether call_stream delivers incremental deltas.
    """

    kind: BackendKind
    supports_streaming: bool = False

    def __init__(self, client: httpx.AsyncClient, *, base_url: str):
        """Initialize client with shared HTTP client.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
            base_url: Upstream base URL (no trailing slash required).
        """
        self._client = client
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    async def call(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> dict:
        """Issue one non-streaming call and return the raw response body.

        Raises:
            BackendError: Non-2xx status, timeout, or network failure.
            MalformedResponseError: 2xx with a non-JSON body.
        """

    async def call_stream(
        self, req: LLMRequest, *, api_key: str, timeout_s: int
    ) -> AsyncIterator[LLMChunk]:
        """Streaming call. Only available when supports_streaming is True.

        Callers must check supports_streaming first; ModelAdapter.stream does
        and falls back to a single-shot call otherwise. Variants that set the
        flag override this method.

        Raises:
            NotImplementedError: The backend has no native streaming.
        """
        raise NotImplementedError(f"{self.kind.value} does not support streaming")
        yield  # type: ignore

    def _build_headers(self, api_key: str) -> dict[str, str]:
        """Build request headers."""
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        """Convert Turn to chat message format (roles map one to one)."""
        return {
            "role": turn.role,
            "content": turn.content,
        }

    def _timeout(self, timeout_s: int) -> httpx.Timeout:
        return httpx.Timeout(timeout_s, connect=CONNECT_TIMEOUT_S)

    async def _post_json(
        self, url: str, *, headers: dict[str, str], body: dict, timeout_s: int
    ) -> dict:
        """POST a JSON body and return the parsed JSON response."""
        try:
            response = await self._client.post(
                url,
                headers=headers,
                json=body,
                timeout=self._timeout(timeout_s),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._translate_http_error(e) from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                self.kind.value,
                f"{self.kind.value} returned a non-JSON body",
                status=response.status_code,
            ) from e

    def _translate_http_error(self, exc: httpx.HTTPError) -> BackendError:
        """Translate an httpx failure into a BackendError for this backend."""
        provider = self.kind.value

        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            json_body = _safe_parse_json(exc.response)
            return BackendError(
                provider,
                f"{provider} request failed: {status}",
                status=status,
                error_class=classify_provider_error(provider, status, json_body, None),
            )

        if isinstance(exc, httpx.TimeoutException):
            return BackendError(
                provider,
                f"{provider} request timed out",
                error_class=LLMErrorClass.TIMEOUT,
            )

        return BackendError(
            provider,
            f"{provider} network error: {type(exc).__name__}",
            error_class=classify_provider_error(provider, None, None, exc),
        )


def _safe_parse_json(response: httpx.Response) -> dict | None:
    """Safely parse JSON from response, returning None on failure."""
    try:
        data = response.json()
    except Exception:
        return None
    return data if isinstance(data, dict) else None
