# backend/gateway/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Real backends and clients satisfy protocols without inheritance
- Test fakes work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class CacheBackend(Protocol):
    """
    Raw key/value store used by CacheStore.

    Values are already JSON-encoded strings. ``ttl=None`` means no expiry.
    Backends may raise; CacheStore swallows and logs their failures.
    """

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...

    async def ping(self) -> bool:
        ...


class UpstreamClientProtocol(Protocol):
    """Interface required by SessionManager and AccountGatewayService."""

    async def login(self, email: str, password: str) -> str:
        ...

    async def logout(self, token: str) -> dict[str, Any]:
        ...

    async def call(
        self,
        endpoint: str,
        token: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...
