"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from mythos.config import Environment, Settings, clear_settings_cache, get_settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {"MYTHOS_ENV": "test"}
    defaults.update(overrides)
    return Settings(**defaults)


class TestDefaults:
    def test_edge_backend_selected_by_default(self):
        s = _make_settings()
        assert s.use_edgecloud is True
        assert s.openrouter_api_key is None
        assert s.edgecloud_api_key is None

    def test_upstream_defaults(self):
        s = _make_settings()
        assert s.openrouter_base_url == "https://openrouter.ai/api/v1"
        assert s.edgecloud_base_url == "https://ondemand.thetaedgecloud.com"
        assert s.app_title == "MythosReply - Twitter Reply Agent"
        assert s.llm_timeout_s == 45
        assert s.reply_generation_concurrency == 1


class TestEnvironmentLoading:
    def test_reads_environment_variables(self, monkeypatch):
        monkeypatch.setenv("USE_EDGECLOUD", "false")
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-from-env")
        monkeypatch.setenv("REPLY_GENERATION_CONCURRENCY", "3")

        s = Settings()

        assert s.mythos_env == Environment.TEST
        assert s.use_edgecloud is False
        assert s.openrouter_api_key == "or-from-env"
        assert s.reply_generation_concurrency == 3

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("EDGECLOUD_API_KEY", "edge-from-env")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.edgecloud_api_key == "edge-from-env"


class TestValidation:
    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_jwt_secret_required_outside_local_and_test(self, env):
        with pytest.raises(ValidationError, match="JWT_SECRET"):
            _make_settings(MYTHOS_ENV=env)

    def test_jwt_secret_accepted_in_prod(self):
        s = _make_settings(MYTHOS_ENV="prod", JWT_SECRET="s3cret")
        assert s.mythos_env == Environment.PROD

    @pytest.mark.parametrize("value", [0, 6])
    def test_concurrency_bounds(self, value):
        with pytest.raises(ValidationError, match="REPLY_GENERATION_CONCURRENCY"):
            _make_settings(REPLY_GENERATION_CONCURRENCY=value)

    def test_timeout_floor(self):
        with pytest.raises(ValidationError, match="LLM_TIMEOUT_S"):
            _make_settings(LLM_TIMEOUT_S=0)
