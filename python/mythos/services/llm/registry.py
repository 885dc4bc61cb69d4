"""Known free/default models per backend.

The first entry for each backend is that backend's default model.
Read-only; shared by all requests.
"""

from dataclasses import dataclass

from mythos.services.llm.types import BackendKind


@dataclass(frozen=True)
class ModelInfo:
    """Catalog entry for a selectable model."""

    id: str
    name: str
    description: str
    prompt_price: float = 0
    completion_price: float = 0


FREE_MODELS: dict[BackendKind, tuple[ModelInfo, ...]] = {
    BackendKind.GATEWAY: (
        ModelInfo(
            id="google/gemma-2-9b-it:free",
            name="Gemma 2 9B",
            description="Google's efficient conversational model",
        ),
        ModelInfo(
            id="microsoft/phi-3-mini-128k-instruct:free",
            name="Phi-3 Mini",
            description="Microsoft's compact but capable model",
        ),
        ModelInfo(
            id="google/gemma-2-2b-it:free",
            name="Gemma 2 2B",
            description="Lightweight Google model for quick responses",
        ),
        ModelInfo(
            id="qwen/qwen-2-7b-instruct:free",
            name="Qwen 2 7B",
            description="Alibaba's multilingual instruction-following model",
        ),
    ),
    BackendKind.EDGE: (
        ModelInfo(
            id="llama-3-70b-instruct",
            name="Llama 3 70B",
            description="Advanced language model optimized for conversation",
        ),
        ModelInfo(
            id="llama-2-70b-chat",
            name="Llama 2 70B Chat",
            description="Chat-tuned model for general conversation",
        ),
    ),
}


def list_models(kind: BackendKind) -> list[ModelInfo]:
    """Models selectable on the given backend."""
    return list(FREE_MODELS[kind])


def default_model_id(kind: BackendKind) -> str:
    """Default model identifier for the given backend."""
    return FREE_MODELS[kind][0].id
