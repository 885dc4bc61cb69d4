"""Reply generation request and response schemas.

Request bodies use camelCase keys on the wire; responses use snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from mythos.services.llm import ModelInfo
from mythos.services.replies import DEFAULT_MAX_LENGTH, GenerationOptions, Tone

TONES = Literal["professional", "casual", "humorous", "supportive", "promotional"]


# =============================================================================
# Request Schemas
# =============================================================================


class GenerateReplyRequest(BaseModel):
    """Request body for POST /ai/generate-reply.

    original_tweet is optional at the schema level so a missing value surfaces
    as "originalTweet is required" instead of a generic body error.
    """

    original_tweet: str | None = Field(default=None, alias="originalTweet")
    context: str | None = None
    tone: TONES = "casual"
    max_length: int = Field(default=DEFAULT_MAX_LENGTH, alias="maxLength")
    include_hashtags: bool = Field(default=False, alias="includeHashtags")
    include_emojis: bool = Field(default=False, alias="includeEmojis")
    custom_instructions: str | None = Field(default=None, alias="customInstructions")
    count: int = 1
    model_id: str | None = Field(default=None, alias="modelId")

    model_config = ConfigDict(populate_by_name=True)

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            source_text=self.original_tweet or "",
            context=self.context,
            tone=Tone(self.tone),
            max_length=self.max_length,
            include_hashtags=self.include_hashtags,
            include_emojis=self.include_emojis,
            custom_instructions=self.custom_instructions,
            variation_count=self.count,
            model_id=self.model_id,
        )


# =============================================================================
# Response Schemas
# =============================================================================


class GenerateReplyOut(BaseModel):
    """Response schema for a generated reply batch."""

    replies: list[str]
    model_used: str
    provider: str
    characters_used: list[int]


class PricingOut(BaseModel):
    prompt: float
    completion: float


class ModelOut(BaseModel):
    """Response schema for a catalog model."""

    id: str
    name: str
    description: str
    pricing: PricingOut

    @classmethod
    def from_info(cls, info: ModelInfo) -> "ModelOut":
        return cls(
            id=info.id,
            name=info.name,
            description=info.description,
            pricing=PricingOut(prompt=info.prompt_price, completion=info.completion_price),
        )


class ModelsOut(BaseModel):
    """Response schema for GET /ai/models."""

    provider: str
    default_model_id: str
    models: list[ModelOut]
