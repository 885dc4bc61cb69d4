"""Provider routing: configuration → backend + credential + model.

- One boolean flag selects the backend; unset means the edge backend
- Gateway without a key → ConfigurationError (before any network call)
- Edge without a key → degraded mode: warning plus placeholder credential
  (the edge API accepts anonymous free-tier calls)
- Explicit model ids are used verbatim; otherwise the backend's default from
  the model registry is used

Configuration is read once into an immutable ProviderSettings and injected,
so resolution is a pure, idempotent read that is safe per request.
"""

from dataclasses import dataclass, field

import httpx

from mythos.config import Settings
from mythos.logging import get_logger
from mythos.services.llm.adapter import DEFAULT_TIMEOUT_S, ModelAdapter
from mythos.services.llm.backend import BackendClient
from mythos.services.llm.edge_client import DEFAULT_EDGE_BASE_URL, EdgeClient
from mythos.services.llm.errors import ConfigurationError
from mythos.services.llm.gateway_client import DEFAULT_GATEWAY_BASE_URL, GatewayClient
from mythos.services.llm.registry import ModelInfo, default_model_id, list_models
from mythos.services.llm.types import BackendKind, ProviderConfig, ResolvedProvider

logger = get_logger(__name__)

# Sent as the bearer credential when the edge backend runs without a key
EDGE_PLACEHOLDER_CREDENTIAL = "anonymous"


@dataclass(frozen=True)
class ProviderSettings:
    """Immutable provider configuration snapshot.

    Attributes:
        use_edge: Select the edge backend (True) or the gateway (False).
        gateway_api_key: OpenRouter key, required when use_edge is False.
        edge_api_key: EdgeCloud key, optional.
        gateway_base_url / edge_base_url: Upstream base URLs.
        app_url / app_title: Gateway attribution headers.
        timeout_s: Per-call upstream timeout in seconds.
        reply_concurrency: Upper bound on in-flight calls per reply batch.
    """

    use_edge: bool = True
    gateway_api_key: str | None = field(default=None, repr=False)
    edge_api_key: str | None = field(default=None, repr=False)
    gateway_base_url: str = DEFAULT_GATEWAY_BASE_URL
    edge_base_url: str = DEFAULT_EDGE_BASE_URL
    app_url: str | None = None
    app_title: str | None = None
    timeout_s: int = DEFAULT_TIMEOUT_S
    reply_concurrency: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderSettings":
        """Snapshot the provider-related fields of application settings."""
        return cls(
            use_edge=settings.use_edgecloud,
            gateway_api_key=settings.openrouter_api_key,
            edge_api_key=settings.edgecloud_api_key,
            gateway_base_url=settings.openrouter_base_url,
            edge_base_url=settings.edgecloud_base_url,
            app_url=settings.app_url,
            app_title=settings.app_title,
            timeout_s=settings.llm_timeout_s,
            reply_concurrency=settings.reply_generation_concurrency,
        )

    @property
    def kind(self) -> BackendKind:
        return BackendKind.EDGE if self.use_edge else BackendKind.GATEWAY


class ProviderRouter:
    """Chooses the backend and model for each call.

    Handles:
    - Backend selection from ProviderSettings
    - Credential enforcement (strict gateway, degraded edge)
    - Default model selection
    - ModelAdapter construction over a shared HTTP client
    """

    def __init__(self, client: httpx.AsyncClient, settings: ProviderSettings):
        """Initialize router with shared HTTP client and provider settings.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
            settings: Immutable provider configuration.
        """
        self._settings = settings
        self._backends: dict[BackendKind, BackendClient] = {
            BackendKind.GATEWAY: GatewayClient(
                client,
                base_url=settings.gateway_base_url,
                app_url=settings.app_url,
                app_title=settings.app_title,
            ),
            BackendKind.EDGE: EdgeClient(client, base_url=settings.edge_base_url),
        }

    @property
    def active_kind(self) -> BackendKind:
        """Backend selected by configuration."""
        return self._settings.kind

    def resolve_provider(self) -> tuple[ProviderConfig, bool]:
        """Resolve backend kind and credential.

        Returns:
            Tuple of (ProviderConfig, degraded).

        Raises:
            ConfigurationError: Gateway selected without OPENROUTER_API_KEY.
        """
        kind = self.active_kind

        if kind == BackendKind.GATEWAY:
            if not self._settings.gateway_api_key:
                raise ConfigurationError(
                    "OPENROUTER_API_KEY is required when USE_EDGECLOUD=false"
                )
            return ProviderConfig(kind=kind, credential=self._settings.gateway_api_key), False

        if not self._settings.edge_api_key:
            logger.warning(
                "llm.provider.degraded",
                provider=kind.value,
                reason="missing_edgecloud_api_key",
            )
            return ProviderConfig(kind=kind, credential=EDGE_PLACEHOLDER_CREDENTIAL), True

        return ProviderConfig(kind=kind, credential=self._settings.edge_api_key), False

    def resolve(self, model_id: str | None = None) -> ResolvedProvider:
        """Resolve backend, credential, and model.

        Args:
            model_id: Explicit model id (used verbatim). Empty or None selects
                the backend default.

        Returns:
            ResolvedProvider.

        Raises:
            ConfigurationError: Required credential missing.
        """
        config, degraded = self.resolve_provider()
        return ResolvedProvider(
            config=config,
            model_id=model_id or default_model_id(config.kind),
            degraded=degraded,
        )

    def model_for(self, resolved: ResolvedProvider) -> ModelAdapter:
        """Build a ModelAdapter for an already-resolved provider."""
        return ModelAdapter(
            self._backends[resolved.kind],
            model_id=resolved.model_id,
            credential=resolved.credential,
            timeout_s=self._settings.timeout_s,
        )

    def get_model(self, model_id: str | None = None) -> ModelAdapter:
        """Resolve and build a ModelAdapter in one step."""
        return self.model_for(self.resolve(model_id))

    def available_models(self) -> list[ModelInfo]:
        """Models selectable on the active backend."""
        return list_models(self.active_kind)

    def default_model_id(self) -> str:
        """Default model for the active backend."""
        return default_model_id(self.active_kind)
