"""Reply generation: options → prompt → N model calls → ReplyBatch.

Flow:
1. Validate options (variation count within [1, 5], source text present)
2. Resolve backend + model via ProviderRouter (explicit model id wins)
3. Build one deterministic prompt from the options
4. Call the model once per variation, sequentially by default
5. Strip, check non-empty, and truncate each reply to max_length

Failure semantics:
- ValidationError / ConfigurationError are raised before any network call
- Any backend failure aborts the whole batch; no partial results, no retries,
  no fallback to the other backend

Bounded concurrency (REPLY_GENERATION_CONCURRENCY > 1) fans variations out
under a semaphore; the first failure cancels in-flight calls and propagates.
"""

import asyncio
import math
from dataclasses import dataclass, field
from enum import Enum

from mythos.logging import get_logger
from mythos.services.llm import (
    BackendKind,
    CallOptions,
    LLMCallContext,
    LLMError,
    LLMOperation,
    LLMUsage,
    MalformedResponseError,
    ModelAdapter,
    ProviderRouter,
    ValidationError,
)

logger = get_logger(__name__)

MIN_VARIATIONS = 1
MAX_VARIATIONS = 5
DEFAULT_MAX_LENGTH = 280

REPLY_TEMPERATURE = 0.7
REPLY_TOP_P = 0.9
MAX_REPLY_TOKENS = 150
DEFAULT_COMPLETION_TOKENS = 500


class Tone(str, Enum):
    """Voice of a generated reply."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    HUMOROUS = "humorous"
    SUPPORTIVE = "supportive"
    PROMOTIONAL = "promotional"


@dataclass(frozen=True)
class GenerationOptions:
    """Caller-supplied options for one reply batch.

    Attributes:
        source_text: The tweet being replied to (required)
        context: Extra context for the reply
        tone: Reply tone
        max_length: Maximum reply length in characters
        include_hashtags: Ask for hashtags
        include_emojis: Ask for emojis
        custom_instructions: Free-form extra instructions
        variation_count: Number of independent replies, 1..5
        model_id: Explicit model id (backend default when None)
    """

    source_text: str
    context: str | None = None
    tone: Tone = Tone.CASUAL
    max_length: int = DEFAULT_MAX_LENGTH
    include_hashtags: bool = False
    include_emojis: bool = False
    custom_instructions: str | None = None
    variation_count: int = 1
    model_id: str | None = None

    def validate(self) -> None:
        """Check constraints before any network call.

        Raises:
            ValidationError: Missing source text, count outside [1, 5], or
                non-positive max length.
        """
        if not self.source_text or not self.source_text.strip():
            raise ValidationError("Original tweet is required", field="source_text")

        if not MIN_VARIATIONS <= self.variation_count <= MAX_VARIATIONS:
            raise ValidationError(
                f"Count must be between {MIN_VARIATIONS} and {MAX_VARIATIONS}",
                field="variation_count",
            )

        if self.max_length < 1:
            raise ValidationError("Maximum length must be positive", field="max_length")


@dataclass(frozen=True)
class ReplyBatch:
    """Replies generated for one request, in generation order."""

    replies: list[str]
    model_used: str
    provider: BackendKind
    characters_used: list[int]
    usage: LLMUsage = field(default_factory=LLMUsage)

    def to_dict(self) -> dict:
        return {
            "replies": list(self.replies),
            "model_used": self.model_used,
            "provider": self.provider.value,
            "characters_used": list(self.characters_used),
        }


def build_reply_prompt(options: GenerationOptions) -> str:
    """Render the reply prompt. Deterministic for equal options."""
    prompt = f'Generate a reply to this tweet: "{options.source_text}"\n\n'

    if options.context:
        prompt += f"Context: {options.context}\n\n"

    prompt += "Requirements:\n"
    prompt += f"- Tone: {Tone(options.tone).value}\n"
    prompt += f"- Maximum length: {options.max_length} characters\n"
    prompt += f"- Include hashtags: {'yes' if options.include_hashtags else 'no'}\n"
    prompt += f"- Include emojis: {'yes' if options.include_emojis else 'no'}\n"

    if options.custom_instructions:
        prompt += f"- Custom instructions: {options.custom_instructions}\n"

    prompt += "\nReply:"

    return prompt


def reply_max_tokens(max_length: int) -> int:
    """Token budget for a reply of max_length characters (~3 chars per token)."""
    return max(1, min(math.ceil(max_length / 3), MAX_REPLY_TOKENS))


def truncate_reply(text: str, max_length: int) -> str:
    """Fit text into max_length characters, preferring a word boundary.

    Cuts at the last space when it lies beyond 80% of the limit, and marks the
    cut with "...".
    """
    if len(text) <= max_length:
        return text

    if max_length <= 3:
        return text[:max_length]

    truncated = text[: max_length - 3]
    last_space = truncated.rfind(" ")

    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."

    return truncated + "..."


class ReplyOrchestrator:
    """Generates reply batches through the configured provider."""

    def __init__(self, router: ProviderRouter, *, concurrency: int = 1):
        """Initialize orchestrator.

        Args:
            router: Provider router used to resolve backend + model per batch.
            concurrency: Max in-flight variations (1 = strictly sequential).
        """
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._router = router
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def generate_replies(self, options: GenerationOptions) -> ReplyBatch:
        """Generate options.variation_count replies.

        Raises:
            ValidationError: Options rejected (no network call made).
            ConfigurationError: Credential missing (no network call made).
            BackendError: Any variation failed; the batch is discarded.
        """
        options.validate()

        resolved = self._router.resolve(options.model_id)
        model = self._router.model_for(resolved)
        prompt = build_reply_prompt(options)
        call_options = CallOptions(
            max_tokens=reply_max_tokens(options.max_length),
            temperature=REPLY_TEMPERATURE,
            top_p=REPLY_TOP_P,
        )

        log_fields = {
            "provider": resolved.kind.value,
            "model_id": resolved.model_id,
            "degraded": resolved.degraded,
            "variation_count": options.variation_count,
            "concurrency": self._concurrency,
        }
        logger.info("replies.batch.started", **log_fields)

        try:
            if self._concurrency == 1:
                outcomes = await self._generate_sequential(model, prompt, call_options, options)
            else:
                outcomes = await self._generate_concurrent(model, prompt, call_options, options)
        except LLMError as e:
            logger.error(
                "replies.batch.failed",
                **log_fields,
                error_class=e.error_class.value,
            )
            raise

        replies = [reply for reply, _ in outcomes]
        usage = LLMUsage(
            prompt_tokens=sum(u.prompt_tokens for _, u in outcomes),
            completion_tokens=sum(u.completion_tokens for _, u in outcomes),
            total_tokens=sum(u.total_tokens for _, u in outcomes),
        )

        logger.info(
            "replies.batch.finished",
            **log_fields,
            reply_chars=[len(r) for r in replies],
            tokens_total=usage.total_tokens,
        )

        return ReplyBatch(
            replies=replies,
            model_used=resolved.model_id,
            provider=resolved.kind,
            characters_used=[len(r) for r in replies],
            usage=usage,
        )

    async def generate_completion(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        model_id: str | None = None,
    ) -> str:
        """General-purpose completion on the configured provider."""
        model = self._router.get_model(model_id)
        result = await model.generate(
            prompt,
            CallOptions(
                max_tokens=max_tokens or DEFAULT_COMPLETION_TOKENS,
                temperature=REPLY_TEMPERATURE if temperature is None else temperature,
            ),
            call_context=LLMCallContext(operation=LLMOperation.COMPLETION),
        )
        return result.text

    async def check_connection(self, model_id: str | None = None) -> bool:
        """Generate one short reply and report whether it succeeded."""
        options = GenerationOptions(
            source_text="Hello, world!",
            tone=Tone.CASUAL,
            max_length=50,
            model_id=model_id,
        )
        try:
            await self.generate_replies(options)
        except LLMError as e:
            logger.warning(
                "replies.connection_check.failed",
                error_class=e.error_class.value,
                model_id=model_id,
            )
            return False
        return True

    async def _generate_sequential(
        self,
        model: ModelAdapter,
        prompt: str,
        call_options: CallOptions,
        options: GenerationOptions,
    ) -> list[tuple[str, LLMUsage]]:
        outcomes = []
        for index in range(options.variation_count):
            outcomes.append(
                await self._generate_one(model, prompt, call_options, options, index)
            )
        return outcomes

    async def _generate_concurrent(
        self,
        model: ModelAdapter,
        prompt: str,
        call_options: CallOptions,
        options: GenerationOptions,
    ) -> list[tuple[str, LLMUsage]]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(index: int) -> tuple[str, LLMUsage]:
            async with semaphore:
                return await self._generate_one(model, prompt, call_options, options, index)

        tasks = [asyncio.create_task(run(i)) for i in range(options.variation_count)]
        try:
            return list(await asyncio.gather(*tasks))
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _generate_one(
        self,
        model: ModelAdapter,
        prompt: str,
        call_options: CallOptions,
        options: GenerationOptions,
        index: int,
    ) -> tuple[str, LLMUsage]:
        result = await model.generate(
            prompt,
            call_options,
            call_context=LLMCallContext(
                operation=LLMOperation.REPLY_GENERATE,
                batch_size=options.variation_count,
                variation_index=index,
            ),
        )

        reply = result.text.strip()
        if not reply:
            raise MalformedResponseError(model.kind.value, "No reply generated")

        return truncate_reply(reply, options.max_length), result.usage
