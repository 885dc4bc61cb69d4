"""Uniform language-model capability over one backend client.

A ModelAdapter binds a BackendClient, a model id and a credential. Everything
above this layer calls generate()/stream() and never branches on backend kind.

Streaming:
- Backends with native streaming yield incremental deltas.
- Backends without it (edge) degrade to a two-event stream: one content chunk
  with the full text, then one terminal chunk. This is a capability gap of the
  upstream API, not incremental delivery.

Observability:
- Emits llm.request.started / llm.request.finished / llm.request.failed
- All events use safe_kv() to prevent prompt or credential leakage
"""

import time
from collections.abc import AsyncIterator

from mythos.logging import get_logger
from mythos.services.llm.backend import BackendClient
from mythos.services.llm.errors import BackendError, LLMErrorClass
from mythos.services.llm.normalizer import normalize
from mythos.services.llm.prompt import PromptInput, extract_prompt_text, to_user_turns
from mythos.services.llm.types import (
    BackendKind,
    CallOptions,
    LLMCallContext,
    LLMChunk,
    LLMOperation,
    LLMRequest,
    NormalizedResult,
)
from mythos.services.redact import hash_text, safe_kv

logger = get_logger(__name__)

# Default timeout for upstream calls in seconds
DEFAULT_TIMEOUT_S = 45


class ModelAdapter:
    """A model on a specific backend, callable with a uniform contract."""

    def __init__(
        self,
        backend: BackendClient,
        *,
        model_id: str,
        credential: str,
        timeout_s: int = DEFAULT_TIMEOUT_S,
    ):
        """Bind a backend client to a model and credential.

        Args:
            backend: The client for the selected backend.
            model_id: Remote model identifier, sent verbatim.
            credential: Backend credential (never logged).
            timeout_s: Per-call upstream timeout in seconds.
        """
        self._backend = backend
        self._model_id = model_id
        self._credential = credential
        self._timeout_s = timeout_s

    @property
    def kind(self) -> BackendKind:
        return self._backend.kind

    @property
    def model_id(self) -> str:
        return self._model_id

    def __repr__(self) -> str:
        return f"ModelAdapter(kind={self.kind.value!r}, model_id={self._model_id!r})"

    async def generate(
        self,
        prompt: PromptInput,
        options: CallOptions | None = None,
        *,
        call_context: LLMCallContext | None = None,
    ) -> NormalizedResult:
        """Generate once and return the normalized result.

        Args:
            prompt: String prompt or structured message list.
            options: Sampling options (defaults to CallOptions()).
            call_context: Observability metadata for this call.

        Returns:
            NormalizedResult, identical in shape for every backend.

        Raises:
            ValidationError: Message list without a user message.
            BackendError: Upstream failure (including MalformedResponseError).
        """
        req = self._build_request(prompt, options)
        base = self._base_log_fields(req, streaming=False, call_ctx=call_context)

        logger.info("llm.request.started", **safe_kv(**base))
        start = time.monotonic()

        try:
            raw = await self._backend.call(
                req, api_key=self._credential, timeout_s=self._timeout_s
            )
            result = normalize(self.kind, raw)
        except BackendError as e:
            self._log_failure(base, start, e)
            raise
        except Exception as e:
            error = BackendError(
                self.kind.value,
                f"Unexpected error: {type(e).__name__}",
                error_class=LLMErrorClass.PROVIDER_DOWN,
            )
            self._log_failure(base, start, error)
            raise error from e

        logger.info(
            "llm.request.finished",
            **safe_kv(
                **base,
                outcome="success",
                latency_ms=int((time.monotonic() - start) * 1000),
                tokens_input=result.usage.prompt_tokens,
                tokens_output=result.usage.completion_tokens,
                tokens_total=result.usage.total_tokens,
                finish_reason=result.finish_reason.value,
                output_chars=len(result.text),
            ),
        )
        return result

    async def stream(
        self,
        prompt: PromptInput,
        options: CallOptions | None = None,
        *,
        call_context: LLMCallContext | None = None,
    ) -> AsyncIterator[LLMChunk]:
        """Stream a generation as LLMChunk events ending in one terminal chunk.

        Raises:
            ValidationError: Message list without a user message.
            BackendError: Upstream failure.
        """
        if not self._backend.supports_streaming:
            async for chunk in self._single_shot_stream(prompt, options, call_context):
                yield chunk
            return

        req = self._build_request(prompt, options)
        base = self._base_log_fields(req, streaming=True, call_ctx=call_context)

        logger.info("llm.request.started", **safe_kv(**base))
        start = time.monotonic()

        try:
            async for chunk in self._backend.call_stream(
                req, api_key=self._credential, timeout_s=self._timeout_s
            ):
                if chunk.done:
                    usage = chunk.usage
                    logger.info(
                        "llm.request.finished",
                        **safe_kv(
                            **base,
                            outcome="success",
                            latency_ms=int((time.monotonic() - start) * 1000),
                            tokens_input=usage.prompt_tokens if usage else None,
                            tokens_output=usage.completion_tokens if usage else None,
                            tokens_total=usage.total_tokens if usage else None,
                        ),
                    )
                yield chunk
        except BackendError as e:
            self._log_failure(base, start, e)
            raise
        except Exception as e:
            error = BackendError(
                self.kind.value,
                f"Unexpected error: {type(e).__name__}",
                error_class=LLMErrorClass.PROVIDER_DOWN,
            )
            self._log_failure(base, start, error)
            raise error from e

    async def _single_shot_stream(
        self,
        prompt: PromptInput,
        options: CallOptions | None,
        call_context: LLMCallContext | None,
    ) -> AsyncIterator[LLMChunk]:
        """One content event, then one finish event."""
        result = await self.generate(prompt, options, call_context=call_context)
        yield LLMChunk(delta_text=result.text, done=False)
        yield LLMChunk(
            delta_text="",
            done=True,
            usage=result.usage,
            finish_reason=result.finish_reason,
            provider_metadata=result.provider_metadata,
        )

    def _build_request(self, prompt: PromptInput, options: CallOptions | None) -> LLMRequest:
        options = options or CallOptions()
        return LLMRequest(
            model_name=self._model_id,
            messages=to_user_turns(extract_prompt_text(prompt)),
            max_tokens=options.max_tokens,
            temperature=options.temperature,
            top_p=options.top_p,
        )

    def _base_log_fields(
        self, req: LLMRequest, *, streaming: bool, call_ctx: LLMCallContext | None
    ) -> dict:
        """Build base log fields for LLM events."""
        prompt_text = req.messages[-1].content
        fields: dict = {
            "provider": self.kind.value,
            "model_id": self._model_id,
            "streaming": streaming,
            "llm_operation": call_ctx.operation.value if call_ctx else LLMOperation.OTHER.value,
            "prompt_chars": len(prompt_text),
            "prompt_sha256": hash_text(prompt_text),
        }
        if call_ctx and call_ctx.batch_size is not None:
            fields["batch_size"] = call_ctx.batch_size
        if call_ctx and call_ctx.variation_index is not None:
            fields["variation_index"] = call_ctx.variation_index
        return fields

    def _log_failure(self, base: dict, start: float, error: BackendError) -> None:
        logger.error(
            "llm.request.failed",
            **safe_kv(
                **base,
                outcome="error",
                error_class=error.error_class.value,
                error_kind=error.kind,
                status=error.status,
                latency_ms=int((time.monotonic() - start) * 1000),
            ),
        )
