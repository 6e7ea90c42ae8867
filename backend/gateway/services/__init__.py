# backend/gateway/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their collaborators through the constructor
- Are easily testable via dependency injection

Usage:
    from gateway.services import AccountGatewayService
    from gateway.services import (
        ValidationError,
        AuthenticationError,
        UpstreamError,
    )

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Endpoints, cache prefixes, limits
    ├── protocols.py                 # Service interfaces (Protocol classes)
    ├── session.py                   # Managed upstream session + retry wrapper
    ├── accounts.py                  # "default" account resolution and fan-out
    ├── gateway.py                   # Public operations (cache-aside facade)
    ├── scheduler.py                 # Periodic default trade length refresh
    ├── cache/                       # Cache-aside store
    │   ├── backends.py              # In-memory (TTL + LRU) and Redis backends
    │   └── store.py                 # Key generation, JSON values, error swallowing
    ├── upstream/                    # Provider access
    │   ├── client.py                # httpx client with tenacity retries
    │   ├── normalize.py             # Response shape extraction and coercion
    │   └── types.py                 # Account, DailyRecord, TradeRecord
    └── analytics/                   # Pure calculations
        ├── drawdown.py              # Peak-to-trough drawdown
        ├── series.py                # Cumulative profit series
        ├── trades.py                # Trade duration statistics
        ├── periods.py               # Period windows and bucketing
        └── types.py                 # Analytics result types
"""

# Accounts
from gateway.services.accounts import AccountResolver, FanoutResult
# Cache
from gateway.services.cache import CacheStore, InMemoryCacheBackend, RedisCacheBackend
# Exceptions
from gateway.services.exceptions import (
    AuthenticationError,
    ServiceError,
    SessionExpiredError,
    TransientFanoutError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
# Facade
from gateway.services.gateway import AccountGatewayService
# Scheduling
from gateway.services.scheduler import DefaultTradeLengthJob
# Session
from gateway.services.session import Credentials, SessionManager
# Upstream
from gateway.services.upstream import UpstreamClient

__all__ = [
    # Facade
    "AccountGatewayService",
    # Accounts
    "AccountResolver",
    "FanoutResult",
    # Cache
    "CacheStore",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    # Session
    "Credentials",
    "SessionManager",
    # Upstream
    "UpstreamClient",
    # Scheduling
    "DefaultTradeLengthJob",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "SessionExpiredError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "TransientFanoutError",
]
