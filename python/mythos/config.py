"""Application settings loaded from environment variables.

Environment Configuration:
    MYTHOS_ENV: Deployment environment (local | test | staging | prod)
    JWT_SECRET: HS256 secret used to verify caller tokens (required in staging/prod)

AI Provider Configuration:
    USE_EDGECLOUD: Select the edge inference backend (default true).
        Set to false to route through the OpenRouter chat-completion gateway.
    OPENROUTER_API_KEY: Gateway credential (required when USE_EDGECLOUD=false)
    OPENROUTER_BASE_URL: Gateway base URL
    EDGECLOUD_API_KEY: Edge credential (optional, anonymous free tier when unset)
    EDGECLOUD_BASE_URL: Edge inference base URL
    APP_URL / APP_TITLE: Attribution headers sent to the gateway

Reply Generation:
    LLM_TIMEOUT_S: Per-call upstream timeout in seconds
    REPLY_GENERATION_CONCURRENCY: Max in-flight variations per batch (1 = sequential)
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - JWT_SECRET is required in staging and prod only
    - REPLY_GENERATION_CONCURRENCY must be within [1, 5]
    - LLM_TIMEOUT_S must be >= 1
    """

    mythos_env: Environment = Field(default=Environment.LOCAL, alias="MYTHOS_ENV")
    jwt_secret: str | None = Field(default=None, alias="JWT_SECRET")

    # Backend selection: unset means the edge backend
    use_edgecloud: bool = Field(default=True, alias="USE_EDGECLOUD")

    openrouter_api_key: str | None = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    edgecloud_api_key: str | None = Field(default=None, alias="EDGECLOUD_API_KEY")
    edgecloud_base_url: str = Field(
        default="https://ondemand.thetaedgecloud.com", alias="EDGECLOUD_BASE_URL"
    )

    app_url: str = Field(default="http://localhost:3000", alias="APP_URL")
    app_title: str = Field(default="MythosReply - Twitter Reply Agent", alias="APP_TITLE")

    llm_timeout_s: int = Field(default=45, alias="LLM_TIMEOUT_S")
    reply_generation_concurrency: int = Field(default=1, alias="REPLY_GENERATION_CONCURRENCY")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure environment-dependent settings are consistent."""
        if self.mythos_env in (Environment.STAGING, Environment.PROD):
            if not self.jwt_secret:
                raise ValueError(f"JWT_SECRET is required for MYTHOS_ENV={self.mythos_env.value}")

        if not 1 <= self.reply_generation_concurrency <= 5:
            raise ValueError("REPLY_GENERATION_CONCURRENCY must be between 1 and 5")

        if self.llm_timeout_s < 1:
            raise ValueError("LLM_TIMEOUT_S must be >= 1")

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
