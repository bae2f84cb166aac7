"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures
- Request ID in error response body
"""

from uuid import UUID

import pytest

from zenvi.middleware.request_id import normalize_request_id
from tests.helpers import auth_headers


class TestNormalizeRequestId:
    def test_missing_generates_uuid(self):
        UUID(normalize_request_id(None))

    def test_uuid_lowercased(self):
        assert (
            normalize_request_id("550E8400-E29B-41D4-A716-446655440000")
            == "550e8400-e29b-41d4-a716-446655440000"
        )

    def test_token_preserved(self):
        assert normalize_request_id("abc_def-1.2") == "abc_def-1.2"

    @pytest.mark.parametrize("value", ["has space", "semi;colon", "x" * 129])
    def test_invalid_replaced(self, value):
        result = normalize_request_id(value)

        assert result != value
        UUID(result)


class TestRequestIdMiddleware:
    """Tests for X-Request-ID middleware."""

    def test_request_id_generated_when_missing(self, authenticated_client, test_user_id):
        """Request ID is generated when not provided."""
        response = authenticated_client.get("/me", headers=auth_headers(test_user_id))

        assert response.status_code == 200
        UUID(response.headers["X-Request-ID"])

    def test_request_id_preserved_when_valid(self, authenticated_client, test_user_id):
        """Valid non-UUID request IDs are preserved."""
        response = authenticated_client.get(
            "/me", headers={**auth_headers(test_user_id), "X-Request-ID": "abc_def-123"}
        )

        assert response.headers["X-Request-ID"] == "abc_def-123"

    def test_request_id_on_auth_failure(self, authenticated_client):
        """Auth failures still carry the request ID, in header and body."""
        response = authenticated_client.get("/me", headers={"X-Request-ID": "trace-401"})

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "trace-401"
        assert response.json()["error"]["request_id"] == "trace-401"

    def test_request_id_in_service_error_body(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/posts/00000000-0000-0000-0000-000000000000",
            headers={**auth_headers(test_user_id), "X-Request-ID": "trace-404"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == "trace-404"

    def test_public_path_gets_request_id(self, authenticated_client):
        response = authenticated_client.get("/health")

        assert "X-Request-ID" in response.headers
