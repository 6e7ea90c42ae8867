# backend/gateway/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests. Sharing matters here: the cache store holds the one
backend-managed upstream session and the upstream client holds the
pooled HTTP connections.

Services are lazily initialized on first use to avoid import-time side effects.
Tests replace them through ``app.dependency_overrides``.

Usage in routers:
    from gateway.dependencies import get_gateway_service, get_session_token

    @router.get("/accounts")
    async def list_accounts(
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Header

from gateway.config import settings
from gateway.services.accounts import AccountResolver
from gateway.services.cache import CacheStore, InMemoryCacheBackend, RedisCacheBackend
from gateway.services.gateway import AccountGatewayService
from gateway.services.protocols import CacheBackend
from gateway.services.scheduler import DefaultTradeLengthJob
from gateway.services.session import SessionManager
from gateway.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_cache_backend / get_upstream_client (no deps)
# 2. get_cache_store (depends on backend)
# 3. get_session_manager (depends on client, cache store)
# 4. get_account_resolver (settings only)
# 5. get_gateway_service (depends on all of the above)
# 6. get_trade_length_job (depends on gateway service)


@lru_cache(maxsize=1)
def get_cache_backend() -> CacheBackend:
    """
    Get the configured cache backend.

    Redis is only reachable-checked at startup (see verify_cache_backend).
    """
    if settings.cache_backend == "redis":
        logger.debug(f"Initializing Redis cache backend at {settings.redis_host}:{settings.redis_port}")
        return RedisCacheBackend(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            db=settings.redis_db,
        )
    logger.debug("Initializing in-memory cache backend")
    return InMemoryCacheBackend(max_entries=settings.cache_max_entries)


@lru_cache(maxsize=1)
def get_cache_store() -> CacheStore:
    """Get the singleton CacheStore shared by sessions and results."""
    return CacheStore(
        backend=get_cache_backend(),
        default_ttl=settings.cache_default_ttl_seconds,
        enabled=settings.cache_enabled,
    )


@lru_cache(maxsize=1)
def get_upstream_client() -> UpstreamClient:
    """Get the singleton upstream client (one connection pool per process)."""
    logger.debug(f"Initializing upstream client for {settings.upstream_api_url}")
    return UpstreamClient(
        api_url=settings.upstream_api_url,
        timeout=settings.upstream_timeout_seconds,
        max_attempts=settings.upstream_max_retries,
    )


@lru_cache(maxsize=1)
def get_session_manager() -> SessionManager:
    """Get the singleton SessionManager owning the managed session."""
    return SessionManager(
        client=get_upstream_client(),
        cache=get_cache_store(),
        email=settings.upstream_email,
        password=settings.upstream_password,
    )


@lru_cache(maxsize=1)
def get_account_resolver() -> AccountResolver:
    return AccountResolver.from_settings(settings)


@lru_cache(maxsize=1)
def get_gateway_service() -> AccountGatewayService:
    """Get the singleton AccountGatewayService."""
    logger.debug("Initializing singleton AccountGatewayService")
    return AccountGatewayService(
        client=get_upstream_client(),
        sessions=get_session_manager(),
        cache=get_cache_store(),
        resolver=get_account_resolver(),
        trade_length_ttl=settings.trade_length_cache_ttl_seconds,
    )


@lru_cache(maxsize=1)
def get_trade_length_job() -> DefaultTradeLengthJob:
    return DefaultTradeLengthJob(
        service=get_gateway_service(),
        interval_minutes=settings.trade_length_refresh_minutes,
    )


# =============================================================================
# LIFECYCLE HELPERS
# =============================================================================


async def verify_cache_backend() -> CacheStore:
    """
    Check the cache backend at startup and fall back to memory if needed.

    A Redis backend that does not answer PING is replaced by an in-memory
    backend so the application still serves requests.
    """
    store = get_cache_store()
    if isinstance(store.backend, RedisCacheBackend) and not await store.backend.ping():
        logger.warning("Redis unavailable, falling back to in-memory cache")
        await store.backend.close()
        store.backend = InMemoryCacheBackend(max_entries=settings.cache_max_entries)
    return store


async def close_dependencies() -> None:
    """Release pooled connections at shutdown."""
    if get_upstream_client.cache_info().currsize:
        await get_upstream_client().aclose()
    if get_cache_store.cache_info().currsize:
        backend = get_cache_store().backend
        if isinstance(backend, RedisCacheBackend):
            await backend.close()


# =============================================================================
# REQUEST DEPENDENCIES
# =============================================================================


def get_session_token(
    x_session_token: Annotated[
        str | None,
        Header(description="Explicit upstream session token (optional)"),
    ] = None,
) -> str | None:
    """
    Read the optional X-Session-Token header.

    Absent header means "use the managed session". A present but empty
    value is passed through and rejected by the service as invalid.
    """
    return x_session_token
