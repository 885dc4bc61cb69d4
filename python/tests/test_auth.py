"""Tests for token verification and auth middleware."""

import time

import jwt
import pytest

from mythos.auth.verifier import JwtSecretVerifier
from mythos.errors import ApiError, ApiErrorCode
from tests.helpers import TEST_JWT_SECRET, auth_headers, make_token


class TestJwtSecretVerifier:
    def test_valid_token(self, test_verifier):
        claims = test_verifier.verify(make_token("user-42"))
        assert claims["sub"] == "user-42"

    def test_expired_token(self, test_verifier):
        with pytest.raises(ApiError) as exc_info:
            test_verifier.verify(make_token(expires_in=-3600))
        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED
        assert exc_info.value.message == "Token expired"

    def test_within_clock_skew(self, test_verifier):
        claims = test_verifier.verify(make_token(expires_in=-30))
        assert claims["sub"] == "user-123"

    def test_wrong_secret(self, test_verifier):
        with pytest.raises(ApiError) as exc_info:
            test_verifier.verify(make_token(secret="some-other-secret"))
        assert exc_info.value.message == "Invalid token signature"

    def test_garbage_token(self, test_verifier):
        with pytest.raises(ApiError) as exc_info:
            test_verifier.verify("not-a-jwt")
        assert exc_info.value.status_code == 401

    def test_missing_sub(self, test_verifier):
        token = jwt.encode(
            {"exp": int(time.time()) + 60}, TEST_JWT_SECRET, algorithm="HS256"
        )
        with pytest.raises(ApiError):
            test_verifier.verify(token)

    def test_audience_enforced_when_configured(self):
        verifier = JwtSecretVerifier(TEST_JWT_SECRET, audience="mythos")
        with pytest.raises(ApiError) as exc_info:
            verifier.verify(make_token())
        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            JwtSecretVerifier("")


class TestAuthMiddleware:
    def test_health_is_public(self, make_client, edge_settings):
        client = make_client(edge_settings)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"data": {"status": "ok"}}

    def test_missing_header(self, make_client, edge_settings):
        response = make_client(edge_settings).get("/ai/models")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Authentication required"

    def test_non_bearer_header(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/ai/models", headers={"Authorization": "Basic abc"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid authorization header format"

    def test_bearer_prefix_case_insensitive(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/ai/models", headers={"Authorization": f"bearer {make_token()}"}
        )

        assert response.status_code == 200

    def test_invalid_token(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/ai/models", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_valid_token(self, make_client, edge_settings):
        response = make_client(edge_settings).get("/ai/models", headers=auth_headers())

        assert response.status_code == 200


class TestCreateApp:
    def test_requires_jwt_secret_without_verifier(self):
        from mythos.app import create_app

        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            create_app()

    def test_uses_jwt_secret_from_settings(self, monkeypatch):
        from fastapi.testclient import TestClient

        from mythos.app import create_app
        from mythos.services.llm import ProviderSettings

        monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
        app = create_app(provider_settings=ProviderSettings())

        with TestClient(app) as client:
            response = client.get("/ai/models", headers=auth_headers())

        assert response.status_code == 200
