# backend/tests/routers/test_error_handling.py
"""
Integration tests for error handling and the health endpoints.

These tests verify:
- Consistent error envelope (success/error/message/details)
- Correct HTTP status codes for each error type
- The global exception handler hides internals
- Health and liveness probes
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from gateway.dependencies import get_cache_store, get_gateway_service
from gateway.main import app
from gateway.services.constants import ENDPOINT_GET_ACCOUNTS
from gateway.services.exceptions import ServiceError, UpstreamTimeoutError
from tests.services.test_cache import FailingBackend


@pytest.fixture
def broken_service():
    """A gateway service whose every operation can be made to fail."""
    return MagicMock()


@pytest.fixture
def broken_client(broken_service, cache_store):
    app.dependency_overrides[get_gateway_service] = lambda: broken_service
    app.dependency_overrides[get_cache_store] = lambda: cache_store

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


class TestErrorEnvelope:
    """Tests for the error response format."""

    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NotFoundError"
        assert "message" in body

    def test_method_not_allowed(self, client):
        response = client.delete("/accounts")

        assert response.status_code == 405
        assert response.json()["error"] == "MethodNotAllowedError"

    def test_correlation_header_on_errors(self, client):
        response = client.get("/does-not-exist")

        assert "X-Correlation-ID" in response.headers

    def test_unexpected_error_is_generic_500(self, broken_client, broken_service):
        broken_service.get_accounts = AsyncMock(side_effect=RuntimeError("secret internals"))

        response = broken_client.get("/accounts")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "InternalServerError"
        assert body["message"] == "An unexpected error occurred"
        assert "secret" not in response.text

    def test_service_error_is_500(self, broken_client, broken_service):
        broken_service.get_accounts = AsyncMock(side_effect=ServiceError("Failed to build listing"))

        response = broken_client.get("/accounts")

        assert response.status_code == 500
        assert response.json()["error"] == "ServiceError"

    def test_upstream_timeout_is_504(self, broken_client, broken_service):
        broken_service.get_accounts = AsyncMock(
            side_effect=UpstreamTimeoutError(ENDPOINT_GET_ACCOUNTS, timeout=5.0)
        )

        response = broken_client.get("/accounts")

        assert response.status_code == 504
        body = response.json()
        assert body["error"] == "UpstreamTimeoutError"
        assert body["details"] == {"endpoint": ENDPOINT_GET_ACCOUNTS, "timeout": 5.0}


class TestHealth:
    """Tests for /health and /health/live."""

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"status": "alive"}}

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["checks"]["cache"] == {
            "status": "healthy",
            "backend": "InMemoryCacheBackend",
            "enabled": True,
        }
        assert data["checks"]["trade_length_refresh"]["is_running"] is False

    def test_degraded_when_cache_down(self, client, cache_store):
        cache_store.backend = FailingBackend()

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "degraded"
        assert data["checks"]["cache"]["status"] == "unhealthy"
