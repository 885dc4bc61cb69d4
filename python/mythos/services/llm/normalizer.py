"""Response normalization: backend-specific envelopes → NormalizedResult.

Two envelope shapes occur upstream:

Chat-completion envelope (gateway, and the current edge inference API):
{
  "id": "gen-...",
  "model": "google/gemma-2-9b-it:free",
  "choices": [{"message": {"role": "assistant", "content": "<text>"},
               "finish_reason": "stop"}],
  "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}
}

Job-result envelope (legacy edge inference path):
{"output": "<text>", "job_id": "job-...", "latency_ms": 742, "cost_milli": 3}

Edge responses are discriminated by shape: a body carrying "choices" is parsed
as a chat completion, anything else as a job result.

Missing optional fields never raise: counts default to 0, finish reason to
"stop", text to "". A chat-completion body with zero choices is unrecoverable
and raises MalformedResponseError.
"""

from typing import Any

from mythos.services.llm.errors import MalformedResponseError
from mythos.services.llm.types import BackendKind, FinishReason, LLMUsage, NormalizedResult

# Upstream finish_reason values → normalized reason. Anything not listed maps to STOP.
FINISH_REASON_MAP: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "eos": FinishReason.STOP,
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "max_tokens": FinishReason.LENGTH,
    "content_filter": FinishReason.CONTENT_FILTER,
    "content-filter": FinishReason.CONTENT_FILTER,
    "tool_calls": FinishReason.OTHER,
    "function_call": FinishReason.OTHER,
    "error": FinishReason.OTHER,
}


def normalize(kind: BackendKind, raw: Any) -> NormalizedResult:
    """Translate a raw backend response into the canonical result shape.

    Args:
        kind: Backend that produced the response.
        raw: Parsed JSON body.

    Returns:
        NormalizedResult with identical shape for every backend.

    Raises:
        MalformedResponseError: Body is not an object, or has zero choices.
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(kind.value, f"{kind.value} response body is not an object")

    if kind == BackendKind.GATEWAY:
        return _normalize_chat_completion(kind, raw)

    if "choices" in raw:
        return _normalize_chat_completion(kind, raw)
    return _normalize_job_result(raw)


def map_finish_reason(value: Any) -> FinishReason:
    """Map an upstream finish_reason to FinishReason, defaulting to STOP."""
    if not isinstance(value, str):
        return FinishReason.STOP
    return FINISH_REASON_MAP.get(value.lower(), FinishReason.STOP)


def parse_usage(usage_data: Any) -> LLMUsage:
    """Build LLMUsage from a chat-completion usage object, zero-filling gaps."""
    if not isinstance(usage_data, dict):
        return LLMUsage()

    prompt_tokens = _as_int(usage_data.get("prompt_tokens"))
    completion_tokens = _as_int(usage_data.get("completion_tokens"))
    total_tokens = _as_int(usage_data.get("total_tokens")) or prompt_tokens + completion_tokens

    return LLMUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


def message_text(content: Any) -> str:
    """Extract plain text from a message content field.

    Content is usually a string; some models return a list of typed parts.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type", "text") == "text"
        )
    return ""


def _normalize_chat_completion(kind: BackendKind, raw: dict) -> NormalizedResult:
    choices = raw.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError(kind.value, f"{kind.value} response missing choices")

    choice = choices[0]
    if not isinstance(choice, dict):
        raise MalformedResponseError(kind.value, f"{kind.value} response choice is not an object")

    message = choice.get("message") or {}
    text = message_text(message.get("content")) if isinstance(message, dict) else ""
    native_finish_reason = choice.get("finish_reason")

    return NormalizedResult(
        text=text,
        usage=parse_usage(raw.get("usage")),
        finish_reason=map_finish_reason(native_finish_reason),
        provider_metadata={
            kind.value: {
                "id": raw.get("id"),
                "model": raw.get("model"),
                "native_finish_reason": native_finish_reason,
            }
        },
    )


def _normalize_job_result(raw: dict) -> NormalizedResult:
    output = raw.get("output")

    # Job results carry no token accounting and no stop signal
    return NormalizedResult(
        text=output if isinstance(output, str) else "",
        usage=LLMUsage(),
        finish_reason=FinishReason.STOP,
        provider_metadata={
            BackendKind.EDGE.value: {
                "job_id": raw.get("job_id"),
                "latency": _as_number(raw.get("latency_ms")),
                "cost": _as_number(raw.get("cost_milli")),
            }
        },
    )


def _as_int(value: Any) -> int:
    """Coerce a numeric JSON field to int, 0 when absent or non-numeric."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0


def _as_number(value: Any) -> int | float:
    """Pass a numeric JSON field through unchanged, 0 when absent or non-numeric."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    return 0
