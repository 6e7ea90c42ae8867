# backend/tests/routers/conftest.py
"""
Fixtures for API tests.

The app's service singletons are replaced through dependency_overrides
with the fake-upstream service from the root conftest.
"""

import pytest
from fastapi.testclient import TestClient

from gateway.dependencies import get_cache_store, get_gateway_service
from gateway.main import app


@pytest.fixture(scope="function")
def client(gateway_service, cache_store) -> TestClient:
    """TestClient wired to the fake upstream."""
    app.dependency_overrides[get_gateway_service] = lambda: gateway_service
    app.dependency_overrides[get_cache_store] = lambda: cache_store

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()
