"""Pytest configuration and fixtures for Mythos tests.

Test isolation strategy:
- Provider and auth environment variables are removed for every test, so a
  developer's shell never leaks keys or backend selection into assertions
- Settings cache is cleared around each test
- Upstream HTTP is mocked with respx; no test talks to a live backend
- App tests build the app with explicit ProviderSettings and an HS256 verifier
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

os.environ.setdefault("MYTHOS_ENV", "test")

import httpx
import pytest
import structlog
from fastapi.testclient import TestClient

from mythos.app import add_request_id_middleware, create_app
from mythos.auth.verifier import JwtSecretVerifier
from mythos.config import clear_settings_cache
from mythos.services.llm import ProviderSettings
from tests.helpers import TEST_JWT_SECRET

PROVIDER_ENV_VARS = (
    "USE_EDGECLOUD",
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "EDGECLOUD_API_KEY",
    "EDGECLOUD_BASE_URL",
    "APP_URL",
    "APP_TITLE",
    "LLM_TIMEOUT_S",
    "REPLY_GENERATION_CONCURRENCY",
    "JWT_SECRET",
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Strip provider/auth configuration from the process environment."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MYTHOS_ENV", "test")


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def gateway_settings() -> ProviderSettings:
    """Gateway backend with a configured key."""
    return ProviderSettings(
        use_edge=False,
        gateway_api_key="or-test-key",
        app_url="https://mythos.test",
        app_title="Mythos Test",
        timeout_s=5,
    )


@pytest.fixture
def edge_settings() -> ProviderSettings:
    """Edge backend with a configured key."""
    return ProviderSettings(use_edge=True, edge_api_key="edge-test-key", timeout_s=5)


@pytest.fixture
def test_verifier() -> JwtSecretVerifier:
    """Provide the HS256 verifier matching tests.helpers.make_token()."""
    return JwtSecretVerifier(TEST_JWT_SECRET)


@pytest.fixture
def make_client(test_verifier):
    """Factory for authenticated test clients bound to given ProviderSettings.

    The returned clients run the app lifespan, so the shared httpx client and
    ProviderRouter exist exactly as in production.
    """
    clients: list[TestClient] = []

    def _make(provider_settings: ProviderSettings) -> TestClient:
        app = create_app(token_verifier=test_verifier, provider_settings=provider_settings)
        add_request_id_middleware(app)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client without authentication.

    Suitable for public endpoints.
    """
    app = create_app(skip_auth_middleware=True)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def log_sink():
    """Configure structlog to capture events into a list.

    Returns a list that will contain all emitted log event dicts.
    After the test, structlog is reset to its previous configuration.
    """
    events: list[dict] = []
    original_config = structlog.get_config()

    def capture_processor(logger, method_name, event_dict):
        event_dict = event_dict.copy()
        event_dict["log_level"] = method_name
        events.append(event_dict)
        raise structlog.DropEvent

    structlog.configure(
        processors=[capture_processor],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    yield events

    structlog.configure(**original_config)
