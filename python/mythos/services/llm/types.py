"""Shared type definitions for the AI provider layer.

- BackendKind: Which upstream inference service served a call
- ProviderConfig / ResolvedProvider: Output of provider routing
- Turn: Provider-agnostic conversation turn
- LLMRequest: Wire-agnostic request handed to a backend client
- LLMUsage: Token accounting (always populated, zero when unknown)
- NormalizedResult: Canonical result shape, identical for every backend
- LLMChunk: Single event from a streaming call

Streaming invariants:
- Chunks with done=False MUST have usage=None and finish_reason=None
- Exactly ONE terminal chunk with done=True
- Terminal chunk carries usage, finish_reason and provider metadata
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


class BackendKind(str, Enum):
    """Upstream inference services a request can be routed to."""

    GATEWAY = "openrouter"
    EDGE = "edgecloud"


class FinishReason(str, Enum):
    """Normalized reason a generation stopped."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content-filter"
    OTHER = "other"


class LLMOperation(str, Enum):
    """Logical operation an LLM call belongs to (for log correlation)."""

    REPLY_GENERATE = "reply_generate"
    COMPLETION = "completion"
    OTHER = "other"


@dataclass(frozen=True)
class ProviderConfig:
    """Backend selection plus the credential used to call it.

    Attributes:
        kind: The selected backend.
        credential: Opaque secret (never logged, never persisted).
    """

    kind: BackendKind
    credential: str = field(repr=False)


@dataclass(frozen=True)
class ResolvedProvider:
    """Result of routing: which backend, which credential, which model.

    Attributes:
        config: Backend kind and credential.
        model_id: Remote model identifier, used verbatim in the upstream call.
        degraded: True when running with a placeholder credential.
    """

    config: ProviderConfig
    model_id: str
    degraded: bool = False

    @property
    def kind(self) -> BackendKind:
        return self.config.kind

    @property
    def credential(self) -> str:
        return self.config.credential


@dataclass(frozen=True)
class Turn:
    """Provider-agnostic conversation turn.

    Attributes:
        role: One of "system", "user", or "assistant"
        content: The text content of the turn
    """

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class CallOptions:
    """Sampling options for a single generation call.

    Attributes:
        max_tokens: Maximum tokens in the completion
        temperature: Sampling temperature, None uses provider default
        top_p: Nucleus sampling, None uses provider default
    """

    max_tokens: int = 150
    temperature: float | None = 0.7
    top_p: float | None = None


@dataclass(frozen=True)
class LLMRequest:
    """Request handed to a backend client.

    Attributes:
        model_name: The remote model identifier
        messages: List of Turn objects
        max_tokens: Maximum tokens in the completion
        temperature: Sampling temperature, None uses provider default
        top_p: Nucleus sampling, None uses provider default
    """

    model_name: str
    messages: list[Turn]
    max_tokens: int
    temperature: float | None = None
    top_p: float | None = None


@dataclass(frozen=True)
class LLMUsage:
    """Token usage for one call.

    Backends that do not report usage produce all zeros, never None.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class NormalizedResult:
    """Canonical result of a generation call.

    Attributes:
        text: Generated text (always a str on success)
        usage: Token usage, zero-filled when the backend reports none
        finish_reason: Normalized stop reason
        provider_metadata: Bag keyed by backend kind value, e.g.
            {"edgecloud": {"job_id": ..., "latency": ..., "cost": ...}}
    """

    text: str
    usage: LLMUsage
    finish_reason: FinishReason
    provider_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class LLMChunk:
    """Single event from a streaming response.

    - done=False: delta_text contains new text; usage and finish_reason are None
    - done=True: terminal event; delta_text may be empty

    Attributes:
        delta_text: New text content in this chunk (may be empty)
        done: Whether this is the final chunk
        usage: Token usage (terminal chunk only)
        finish_reason: Normalized stop reason (terminal chunk only)
        provider_metadata: Backend-tagged metadata (terminal chunk only)
    """

    delta_text: str
    done: bool
    usage: LLMUsage | None = None
    finish_reason: FinishReason | None = None
    provider_metadata: dict[str, dict[str, Any]] | None = None

    def __post_init__(self):
        """Validate streaming invariants."""
        if not self.done and (self.usage is not None or self.finish_reason is not None):
            raise ValueError("Non-terminal chunks (done=False) must have usage=None")


@dataclass(frozen=True)
class LLMCallContext:
    """Observability metadata attached to a call (never forwarded upstream)."""

    operation: LLMOperation = LLMOperation.OTHER
    batch_size: int | None = None
    variation_index: int | None = None
