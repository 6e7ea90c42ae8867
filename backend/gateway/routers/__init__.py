# backend/gateway/routers/__init__.py
"""
API routers for the Account Analytics Gateway.

Each router handles a specific area:
- accounts: Account listing, totals, trades, daily data and comparisons
- auth: Upstream login, logout and authentication test
- cache: Cache reset
"""

from gateway.routers.accounts import router as accounts_router
from gateway.routers.auth import router as auth_router
from gateway.routers.cache import router as cache_router

__all__ = [
    "accounts_router",
    "auth_router",
    "cache_router",
]
