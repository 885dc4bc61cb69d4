"""Tests for ProviderRouter backend/credential/model resolution."""

import pytest
import respx

from mythos.config import Settings
from mythos.services.llm import (
    BackendKind,
    ConfigurationError,
    ProviderRouter,
    ProviderSettings,
)
from mythos.services.llm.router import EDGE_PLACEHOLDER_CREDENTIAL


class TestResolveProvider:
    def test_gateway_with_key(self, httpx_client, gateway_settings):
        router = ProviderRouter(httpx_client, gateway_settings)

        config, degraded = router.resolve_provider()

        assert config.kind == BackendKind.GATEWAY
        assert config.credential == "or-test-key"
        assert degraded is False

    @respx.mock
    def test_gateway_without_key_fails_before_network(self, httpx_client):
        router = ProviderRouter(httpx_client, ProviderSettings(use_edge=False))

        with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
            router.resolve()

        assert len(respx.calls) == 0

    def test_edge_without_key_is_degraded(self, httpx_client, log_sink):
        router = ProviderRouter(httpx_client, ProviderSettings(use_edge=True))

        resolved = router.resolve()

        assert resolved.kind == BackendKind.EDGE
        assert resolved.degraded is True
        assert resolved.credential == EDGE_PLACEHOLDER_CREDENTIAL

        degraded_events = [e for e in log_sink if e["event"] == "llm.provider.degraded"]
        assert len(degraded_events) == 1
        assert degraded_events[0]["log_level"] == "warning"
        assert degraded_events[0]["provider"] == "edgecloud"

    def test_edge_with_key(self, httpx_client, edge_settings):
        router = ProviderRouter(httpx_client, edge_settings)

        resolved = router.resolve()

        assert resolved.degraded is False
        assert resolved.credential == "edge-test-key"

    def test_default_settings_select_edge(self, httpx_client):
        router = ProviderRouter(httpx_client, ProviderSettings())

        assert router.active_kind == BackendKind.EDGE

    def test_credential_not_in_repr(self, httpx_client, gateway_settings):
        router = ProviderRouter(httpx_client, gateway_settings)

        resolved = router.resolve()

        assert "or-test-key" not in repr(resolved)
        assert "or-test-key" not in repr(gateway_settings)


class TestResolveModel:
    def test_explicit_model_used_verbatim(self, httpx_client, gateway_settings):
        router = ProviderRouter(httpx_client, gateway_settings)

        resolved = router.resolve("acme/custom-model:beta")

        assert resolved.model_id == "acme/custom-model:beta"

    @pytest.mark.parametrize("model_id", [None, ""])
    def test_missing_model_uses_backend_default(self, httpx_client, gateway_settings, model_id):
        router = ProviderRouter(httpx_client, gateway_settings)

        assert router.resolve(model_id).model_id == "google/gemma-2-9b-it:free"

    def test_edge_default_model(self, httpx_client, edge_settings):
        router = ProviderRouter(httpx_client, edge_settings)

        assert router.resolve().model_id == "llama-3-70b-instruct"
        assert router.default_model_id() == "llama-3-70b-instruct"

    def test_resolve_is_idempotent(self, httpx_client, edge_settings):
        router = ProviderRouter(httpx_client, edge_settings)

        assert router.resolve("m") == router.resolve("m")

    def test_get_model_binds_backend(self, httpx_client, gateway_settings):
        router = ProviderRouter(httpx_client, gateway_settings)

        model = router.get_model()

        assert model.kind == BackendKind.GATEWAY
        assert model.model_id == "google/gemma-2-9b-it:free"

    def test_available_models_follow_active_backend(self, httpx_client, gateway_settings):
        router = ProviderRouter(httpx_client, gateway_settings)

        ids = [m.id for m in router.available_models()]

        assert ids[0] == "google/gemma-2-9b-it:free"
        assert all(m.prompt_price == 0 for m in router.available_models())


class TestProviderSettings:
    def test_from_settings(self):
        settings = Settings(
            USE_EDGECLOUD="false",
            OPENROUTER_API_KEY="or-key",
            APP_URL="https://app.test",
            LLM_TIMEOUT_S=12,
            REPLY_GENERATION_CONCURRENCY=3,
        )

        provider_settings = ProviderSettings.from_settings(settings)

        assert provider_settings.use_edge is False
        assert provider_settings.kind == BackendKind.GATEWAY
        assert provider_settings.gateway_api_key == "or-key"
        assert provider_settings.edge_api_key is None
        assert provider_settings.app_url == "https://app.test"
        assert provider_settings.timeout_s == 12
        assert provider_settings.reply_concurrency == 3

    def test_is_immutable(self):
        provider_settings = ProviderSettings()

        with pytest.raises(AttributeError):
            provider_settings.use_edge = False
