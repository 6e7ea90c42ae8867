# backend/gateway/services/cache/backends.py
"""
Cache backends: raw string key/value stores behind CacheStore.

Two interchangeable implementations of the CacheBackend protocol:

- InMemoryCacheBackend: bounded LRU with per-entry TTL, single process
- RedisCacheBackend: redis.asyncio client, shared between processes

Both store already-encoded strings; JSON encoding happens in CacheStore so
a cache hit returns exactly what was written regardless of backend.
"""

import logging
import threading
import time
from collections import OrderedDict

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class InMemoryCacheBackend:
    """
    Thread-safe bounded LRU cache with per-entry TTL.

    Expiry is lazy: an expired entry is dropped when it is next read.

    Memory Safety:
        Holds at most ``max_entries`` keys. When full, the least recently
        used entry that has a TTL is evicted first, so permanent entries
        (the upstream session) survive pressure from short-lived results.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._entries: OrderedDict[str, tuple[float | None, str]] = OrderedDict()
        self._max_entries = max_entries
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            expires_at, value = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache expired for {key}")
                return None

            self._entries.move_to_end(key)
            return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl is not None else None
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self._max_entries:
                self._evict_one()
            self._entries[key] = (expires_at, value)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_one(self) -> None:
        """Evict the oldest expiring entry, or the oldest entry if none expire."""
        victim = next(
            (key for key, (expires_at, _) in self._entries.items() if expires_at is not None),
            next(iter(self._entries)),
        )
        del self._entries[victim]
        logger.debug(f"Cache evicted {victim} (LRU)")


class RedisCacheBackend:
    """
    Redis-backed cache using ``redis.asyncio``.

    ``ttl=None`` writes a plain SET (no expiry); otherwise SET ... EX ttl.
    ``clear()`` flushes only the configured database.
    """

    def __init__(
            self,
            host: str = "localhost",
            port: int = 6379,
            password: str | None = None,
            db: int = 0,
            client: aioredis.Redis | None = None,
    ) -> None:
        self._client = client or aioredis.Redis(
            host=host,
            port=port,
            password=password,
            db=db,
            decode_responses=True,
        )
        self._location = f"{host}:{port}/{db}"

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl is None:
            await self._client.set(key, value)
        else:
            await self._client.set(key, value, ex=ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def clear(self) -> None:
        await self._client.flushdb()

    async def ping(self) -> bool:
        """Return True if Redis answers; connection errors are reported as False."""
        try:
            return bool(await self._client.ping())
        except (aioredis.RedisError, OSError) as e:
            logger.warning(f"Redis at {self._location} is unreachable: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
