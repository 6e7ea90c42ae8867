"""
Caching for the gateway.

Usage:
    from gateway.services.cache import CacheStore, InMemoryCacheBackend, generate_key
"""

from gateway.services.cache.backends import InMemoryCacheBackend, RedisCacheBackend
from gateway.services.cache.store import CacheStore, generate_key

__all__ = [
    "CacheStore",
    "generate_key",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
]
