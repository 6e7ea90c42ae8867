# backend/gateway/services/cache/store.py
"""
Cache-aside store used by every gateway operation.

CacheStore wraps a CacheBackend and adds:
- JSON encoding of values, so hits are identical to what was written
- a default TTL for derived results and a permanent write for the session
- failure isolation: any backend error is logged and treated as a miss
  or a skipped write, never raised to the caller
- a global enable switch that never applies to the session key

Cache key format: "{prefix}:{param1}:{param2}:..." with every
non-alphanumeric character of each parameter replaced by "_".

Usage:
    from gateway.services.cache import CacheStore, InMemoryCacheBackend, generate_key

    store = CacheStore(InMemoryCacheBackend(), default_ttl=30)
    key = generate_key("history", "12345")
    cached = await store.get(key)
    if cached is None:
        await store.set(key, fetched)
"""

import json
import logging
import re
from typing import Any, Iterable

from gateway.services.constants import SESSION_CACHE_KEY
from gateway.services.protocols import CacheBackend

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9]")


def generate_key(prefix: str, *params: Any) -> str:
    """
    Build a deterministic cache key from a prefix and parameters.

    Examples:
        >>> generate_key("daily-data", "123", "2024-01-01", "2024-01-31")
        'daily-data:123:2024_01_01:2024_01_31'
    """
    parts = [_UNSAFE_KEY_CHARS.sub("_", str(param)) for param in params]
    return ":".join([prefix, *parts])


class CacheStore:
    """
    Cache-aside wrapper with TTL and failure isolation.

    Attributes:
        backend: The underlying CacheBackend
        enabled: When False, result reads miss and result writes are skipped
        default_ttl: TTL applied by set() when none is given
    """

    def __init__(
            self,
            backend: CacheBackend,
            default_ttl: int = 30,
            enabled: bool = True,
            always_stored_keys: Iterable[str] = (SESSION_CACHE_KEY,),
    ) -> None:
        self.backend = backend
        self.default_ttl = default_ttl
        self.enabled = enabled
        self._always_stored = frozenset(always_stored_keys)

    async def get(self, key: str) -> Any | None:
        """
        Return the cached value, or None on miss, expiry, disabled cache
        or backend failure.
        """
        if self._bypassed(key):
            return None

        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

        if raw is None:
            logger.debug(f"Cache miss for {key}")
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None

        logger.debug(f"Cache hit for {key}")
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value with ``ttl`` seconds of life (default TTL if None)."""
        await self._write(key, value, ttl if ttl is not None else self.default_ttl)

    async def set_permanent(self, key: str, value: Any) -> None:
        """Store a value with no expiry."""
        await self._write(key, value, None)

    async def delete(self, key: str) -> None:
        try:
            await self.backend.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    async def reset(self) -> None:
        """Clear every entry, including the stored session."""
        try:
            await self.backend.clear()
            logger.info("Cache cleared")
        except Exception as e:
            logger.warning(f"Cache reset failed: {e}")

    async def _write(self, key: str, value: Any, ttl: int | None) -> None:
        if self._bypassed(key):
            return

        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Value for {key} is not JSON serializable, not cached: {e}")
            return

        try:
            await self.backend.set(key, encoded, ttl)
            logger.debug(f"Cached {key} (ttl={ttl})")
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def _bypassed(self, key: str) -> bool:
        return not self.enabled and key not in self._always_stored
