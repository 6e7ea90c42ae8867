# backend/tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from gateway.main import app
from gateway.middleware.correlation import MAX_CORRELATION_ID_LENGTH
from gateway.utils.context import clear_correlation_id, get_correlation_id, set_correlation_id


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_clear_correlation_id(self):
        """Should clear correlation ID."""
        set_correlation_id("test-correlation-456")
        clear_correlation_id()
        assert get_correlation_id() is None


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture(scope="function")
    def client(self) -> TestClient:
        """Plain client; /health/live touches no dependency."""
        return TestClient(app)

    def test_generates_id_when_not_provided(self, client):
        """Should generate a UUID when no header is sent."""
        response = client.get("/health/live")

        assert response.status_code == 200
        uuid.UUID(response.headers["X-Correlation-ID"])

    def test_uses_provided_correlation_id(self, client):
        """Should echo the caller's X-Correlation-ID."""
        response = client.get("/health/live", headers={"X-Correlation-ID": "my-trace-id-123"})

        assert response.headers["X-Correlation-ID"] == "my-trace-id-123"

    def test_falls_back_to_request_id(self, client):
        """Should use X-Request-ID when X-Correlation-ID is absent."""
        response = client.get("/health/live", headers={"X-Request-ID": "request-789"})

        assert response.headers["X-Correlation-ID"] == "request-789"

    def test_correlation_id_preferred_over_request_id(self, client):
        """X-Correlation-ID wins when both headers are sent."""
        response = client.get(
            "/health/live",
            headers={"X-Correlation-ID": "correlation-1", "X-Request-ID": "request-1"},
        )

        assert response.headers["X-Correlation-ID"] == "correlation-1"

    def test_unsafe_id_is_replaced(self, client):
        """Should not echo IDs with characters outside the safe set."""
        response = client.get("/health/live", headers={"X-Correlation-ID": "bad id<script>"})

        returned = response.headers["X-Correlation-ID"]
        assert returned != "bad id<script>"
        uuid.UUID(returned)

    def test_long_id_is_truncated(self, client):
        """Should truncate IDs to the maximum length."""
        response = client.get("/health/live", headers={"X-Correlation-ID": "a" * 200})

        assert response.headers["X-Correlation-ID"] == "a" * MAX_CORRELATION_ID_LENGTH

    def test_different_requests_get_different_ids(self, client):
        """Each request without a header gets its own ID."""
        first = client.get("/health/live").headers["X-Correlation-ID"]
        second = client.get("/health/live").headers["X-Correlation-ID"]

        assert first != second

    def test_context_cleared_after_request(self, client):
        """The ID does not leak past the request."""
        client.get("/health/live", headers={"X-Correlation-ID": "leak-check"})

        assert get_correlation_id() != "leak-check"
