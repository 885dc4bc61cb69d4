"""Theta EdgeCloud on-demand inference client.

- Endpoint: POST {EDGECLOUD_BASE_URL}/infer_request/{model_id}/completions
- Headers: Authorization: Bearer <key>, Content-Type: application/json
- No streaming: every call is a single synchronous request

Request body:
{
  "input": {
    "messages": [{"role": "user", "content": "..."}],
    "max_tokens": 94,
    "temperature": 0.7,
    "stream": false
  }
}

Response bodies come in two shapes (chat-completion envelope, or legacy job
result {output, job_id, latency_ms, cost_milli}); normalizer.normalize()
discriminates between them.
"""

from urllib.parse import quote

import httpx

from mythos.services.llm.backend import BackendClient
from mythos.services.llm.types import BackendKind, LLMRequest

DEFAULT_EDGE_BASE_URL = "https://ondemand.thetaedgecloud.com"
EDGE_INFER_PATH = "/infer_request/{model_id}/completions"


class EdgeClient(BackendClient):
    """EdgeCloud inference client (non-streaming)."""

    kind = BackendKind.EDGE
    supports_streaming = False

    def __init__(self, client: httpx.AsyncClient, *, base_url: str = DEFAULT_EDGE_BASE_URL):
        super().__init__(client, base_url=base_url)

    def infer_url(self, model_id: str) -> str:
        return self.base_url + EDGE_INFER_PATH.format(model_id=quote(model_id, safe=""))

    async def infer(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> dict:
        """Run one inference job. Returns the raw response body."""
        return await self._post_json(
            self.infer_url(req.model_name),
            headers=self._build_headers(api_key),
            body=self._build_request_body(req),
            timeout_s=timeout_s,
        )

    async def call(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> dict:
        return await self.infer(req, api_key=api_key, timeout_s=timeout_s)

    def _build_request_body(self, req: LLMRequest) -> dict:
        """Build the job input envelope from LLMRequest."""
        job_input: dict = {
            "messages": [self._turn_to_message(turn) for turn in req.messages],
            "max_tokens": req.max_tokens,
            "stream": False,
        }

        if req.temperature is not None:
            job_input["temperature"] = req.temperature
        if req.top_p is not None:
            job_input["top_p"] = req.top_p

        return {"input": job_input}
