"""OpenRouter chat-completion gateway client.

- Endpoint: POST {OPENROUTER_BASE_URL}/chat/completions
- Headers: Authorization: Bearer <key>, Content-Type: application/json,
  HTTP-Referer: <app url>, X-Title: <app title>
- Streaming: Server-Sent Events with data: {...} format, ": ..." keep-alive
  comments, terminal event data: [DONE]
- Usage arrives in the last content event before [DONE]

Request body:
{
  "model": "google/gemma-2-9b-it:free",
  "messages": [{"role": "user", "content": "..."}],
  "max_tokens": 94,
  "temperature": 0.7,
  "top_p": 0.9,
  "stream": false
}

The raw non-stream response is the chat-completion envelope; normalization
happens in normalizer.normalize().
"""

import json
from collections.abc import AsyncIterator

import httpx

from mythos.services.llm.backend import BackendClient
from mythos.services.llm.errors import BackendError, LLMErrorClass, MalformedResponseError
from mythos.services.llm.normalizer import map_finish_reason, parse_usage
from mythos.services.llm.types import BackendKind, LLMChunk, LLMRequest, LLMUsage

DEFAULT_GATEWAY_BASE_URL = "https://openrouter.ai/api/v1"


class GatewayClient(BackendClient):
    """OpenRouter gateway client for chat completions."""

    kind = BackendKind.GATEWAY
    supports_streaming = True

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = DEFAULT_GATEWAY_BASE_URL,
        app_url: str | None = None,
        app_title: str | None = None,
    ):
        super().__init__(client, base_url=base_url)
        self.app_url = app_url
        self.app_title = app_title

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def complete(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> dict:
        """Non-streaming chat completion. Returns the raw envelope."""
        return await self._post_json(
            self.completions_url,
            headers=self._build_headers(api_key),
            body=self._build_request_body(req, stream=False),
            timeout_s=timeout_s,
        )

    async def call(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> dict:
        return await self.complete(req, api_key=api_key, timeout_s=timeout_s)

    async def call_stream(
        self, req: LLMRequest, *, api_key: str, timeout_s: int
    ) -> AsyncIterator[LLMChunk]:
        """Streaming chat completion using Server-Sent Events."""
        try:
            async with self._client.stream(
                "POST",
                self.completions_url,
                headers=self._build_headers(api_key),
                json=self._build_request_body(req, stream=True),
                timeout=self._timeout(timeout_s),
            ) as response:
                if response.is_error:
                    await response.aread()
                response.raise_for_status()

                async for chunk in self._parse_stream(response):
                    yield chunk
        except httpx.HTTPError as e:
            raise self._translate_http_error(e) from e

    async def _parse_stream(self, response: httpx.Response) -> AsyncIterator[LLMChunk]:
        """Turn SSE lines into content chunks plus one terminal chunk."""
        usage: LLMUsage | None = None
        native_finish_reason: str | None = None
        generation_id: str | None = None
        model: str | None = None

        async for line in response.aiter_lines():
            if not line:
                continue

            # Keep-alive comments (": OPENROUTER PROCESSING") and other fields
            if not line.startswith("data: "):
                continue

            data_str = line[6:]

            if data_str == "[DONE]":
                yield LLMChunk(
                    delta_text="",
                    done=True,
                    usage=usage or LLMUsage(),
                    finish_reason=map_finish_reason(native_finish_reason),
                    provider_metadata={
                        self.kind.value: {
                            "id": generation_id,
                            "model": model,
                            "native_finish_reason": native_finish_reason,
                        }
                    },
                )
                return

            try:
                data = json.loads(data_str)
            except json.JSONDecodeError:
                continue

            if not isinstance(data, dict):
                raise MalformedResponseError(
                    self.kind.value,
                    f"{self.kind.value} stream event is not a JSON object",
                )

            if "error" in data:
                error = data["error"] if isinstance(data["error"], dict) else {}
                raise BackendError(
                    self.kind.value,
                    f"{self.kind.value} stream error: {error.get('message', 'unknown')}",
                    status=error.get("code") if isinstance(error.get("code"), int) else None,
                )

            generation_id = data.get("id", generation_id)
            model = data.get("model", model)

            if data.get("usage"):
                usage = parse_usage(data["usage"])

            choices = data.get("choices") or []
            if not choices:
                continue
            if not isinstance(choices, list) or not isinstance(choices[0], dict):
                raise MalformedResponseError(
                    self.kind.value,
                    f"{self.kind.value} stream event has malformed choices",
                )

            if choices[0].get("finish_reason"):
                native_finish_reason = choices[0]["finish_reason"]

            delta = choices[0].get("delta")
            delta_text = delta.get("content") if isinstance(delta, dict) else None
            if isinstance(delta_text, str) and delta_text:
                yield LLMChunk(delta_text=delta_text, done=False)

        raise BackendError(
            self.kind.value,
            f"{self.kind.value} stream ended without [DONE] marker",
            error_class=LLMErrorClass.PROVIDER_DOWN,
        )

    def _build_headers(self, api_key: str) -> dict[str, str]:
        """Build request headers, including gateway attribution headers."""
        headers = super()._build_headers(api_key)
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    def _build_request_body(self, req: LLMRequest, stream: bool) -> dict:
        """Build request body from LLMRequest."""
        body: dict = {
            "model": req.model_name,
            "messages": [self._turn_to_message(turn) for turn in req.messages],
            "max_tokens": req.max_tokens,
            "stream": stream,
        }

        if req.temperature is not None:
            body["temperature"] = req.temperature
        if req.top_p is not None:
            body["top_p"] = req.top_p

        return body
