"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures and in error bodies
"""

from uuid import UUID

from mythos.middleware.request_id import is_valid_request_id, normalize_request_id
from tests.helpers import auth_headers


class TestRequestIdHelpers:
    def test_valid_ids(self):
        assert is_valid_request_id("abc-123_def.456")
        assert is_valid_request_id("123e4567-e89b-12d3-a456-426614174000")

    def test_invalid_ids(self):
        assert not is_valid_request_id("has spaces")
        assert not is_valid_request_id("a" * 129)
        assert not is_valid_request_id("semi;colon")

    def test_uuid_normalized_to_lowercase(self):
        assert normalize_request_id("123E4567-E89B-12D3-A456-426614174000") == (
            "123e4567-e89b-12d3-a456-426614174000"
        )

    def test_non_uuid_preserved(self):
        assert normalize_request_id("Trace.ABC") == "Trace.ABC"


class TestRequestIdMiddleware:
    def test_generated_when_missing(self, make_client, edge_settings):
        response = make_client(edge_settings).get("/health")

        request_id = response.headers["X-Request-ID"]
        assert UUID(request_id).version == 4

    def test_preserved_when_valid(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/health", headers={"X-Request-ID": "client-trace-42"}
        )

        assert response.headers["X-Request-ID"] == "client-trace-42"

    def test_replaced_when_invalid(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/health", headers={"X-Request-ID": "bad id with spaces"}
        )

        assert response.headers["X-Request-ID"] != "bad id with spaces"
        UUID(response.headers["X-Request-ID"])

    def test_present_on_auth_failure(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/ai/models", headers={"X-Request-ID": "auth-fail-1"}
        )

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "auth-fail-1"
        assert response.json()["error"]["request_id"] == "auth-fail-1"

    def test_present_on_success(self, make_client, edge_settings):
        response = make_client(edge_settings).get(
            "/ai/models", headers={**auth_headers(), "X-Request-ID": "ok-1"}
        )

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "ok-1"
