"""AI provider layer: one "generate text" contract over two inference backends.

This module routes calls to either the OpenRouter chat-completion gateway or
the EdgeCloud inference service. It includes:

- Backend clients with async support (gateway: non-streaming + streaming,
  edge: non-streaming with a degraded single-shot stream)
- Response normalization into one canonical result shape
- Provider routing from an immutable configuration snapshot
- Error classification and normalization

Usage:
    from mythos.services.llm import ProviderRouter, ProviderSettings

    router = ProviderRouter(httpx_client, ProviderSettings.from_settings(settings))
    model = router.get_model()          # default model on the configured backend
    result = await model.generate("Say hi")
    print(result.text, result.usage.total_tokens)

Rules:
- No retries and no cross-backend fallback
- No logging of prompts, generated text, or credentials
"""

from mythos.services.llm.adapter import ModelAdapter
from mythos.services.llm.backend import CONNECT_TIMEOUT_S, BackendClient
from mythos.services.llm.edge_client import EdgeClient
from mythos.services.llm.errors import (
    BackendError,
    ConfigurationError,
    LLMError,
    LLMErrorClass,
    MalformedResponseError,
    ValidationError,
    classify_provider_error,
)
from mythos.services.llm.gateway_client import GatewayClient
from mythos.services.llm.normalizer import normalize
from mythos.services.llm.prompt import extract_prompt_text
from mythos.services.llm.registry import FREE_MODELS, ModelInfo
from mythos.services.llm.router import ProviderRouter, ProviderSettings
from mythos.services.llm.types import (
    BackendKind,
    CallOptions,
    FinishReason,
    LLMCallContext,
    LLMChunk,
    LLMOperation,
    LLMRequest,
    LLMUsage,
    NormalizedResult,
    ProviderConfig,
    ResolvedProvider,
    Turn,
)

__all__ = [
    # Core types
    "BackendKind",
    "CallOptions",
    "FinishReason",
    "LLMCallContext",
    "LLMChunk",
    "LLMOperation",
    "LLMRequest",
    "LLMUsage",
    "NormalizedResult",
    "ProviderConfig",
    "ResolvedProvider",
    "Turn",
    # Backends
    "BackendClient",
    "CONNECT_TIMEOUT_S",
    "GatewayClient",
    "EdgeClient",
    # Adapter and routing
    "ModelAdapter",
    "ProviderRouter",
    "ProviderSettings",
    "FREE_MODELS",
    "ModelInfo",
    # Normalization
    "normalize",
    "extract_prompt_text",
    # Errors
    "LLMError",
    "LLMErrorClass",
    "ConfigurationError",
    "ValidationError",
    "BackendError",
    "MalformedResponseError",
    "classify_provider_error",
]
