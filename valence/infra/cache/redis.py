"""Redis implementation of ExpiringStorePort (ephemeral backend).

- Values are stored as JSON text; entries may be evicted at any time
- Expiry uses the native EXPIRE command at whole-key granularity
- Default mode is APPEND: each key holds an ordered list of values
- Append is GET + SET; concurrent appenders to one key can lose an update
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from valence.infra.entries import decode_entry, encode_append
from valence.infra.timeout import DEFAULT_TIMEOUT_SECONDS, with_timeout
from valence.ports.storage_port import ExpiringStorePort, StoreMode, validate_ttl
from valence.shared.errors import (
    BackendDeleteError,
    BackendReadError,
    BackendWriteError,
    ConnectionFailedError,
    PortTimeoutError,
)
from valence.shared.serialization import serialize

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from valence.shared.errors import BackendError

logger = logging.getLogger(__name__)

_BACKEND = "redis"


class RedisCacheStore(ExpiringStorePort):
    """Redis adapter implementing the ExpiringStorePort interface.

    The client handle owns a connection pool and is shared by all
    concurrent calls on this store.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        mode: StoreMode = StoreMode.APPEND,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._mode = mode
        self._timeout = timeout_seconds

    @classmethod
    async def init(
        cls,
        url: str,
        *,
        mode: StoreMode = StoreMode.APPEND,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> Self:
        """Open a pooled client for `url` and verify it answers PING."""
        try:
            client = aioredis.from_url(  # type: ignore[no-untyped-call]
                url,
                decode_responses=False,
                socket_timeout=timeout_seconds,
                socket_connect_timeout=timeout_seconds,
            )
        except ValueError as exc:
            raise ConnectionFailedError(_BACKEND, f"Invalid Redis URL: {exc}") from exc

        store = cls(client, mode=mode, timeout_seconds=timeout_seconds)
        try:
            await store._call(client.ping())
        except (RedisError, PortTimeoutError) as exc:
            await client.aclose()
            raise ConnectionFailedError(_BACKEND, f"Redis unreachable: {exc}") from exc

        logger.info("Redis cache store connected (mode=%s)", mode.value)
        return store

    @property
    def mode(self) -> StoreMode:
        return self._mode

    async def _call(self, aw: Awaitable[Any]) -> Any:
        return await with_timeout(aw, port_name=_BACKEND, timeout_seconds=self._timeout)

    async def _read_raw(self, key: str, error_cls: type[BackendError]) -> bytes | None:
        try:
            raw: bytes | None = await self._call(self._client.get(key))
        except (RedisError, PortTimeoutError) as exc:
            logger.error("Redis GET failed for key=%s: %s", key, exc)
            raise error_cls(_BACKEND, key, str(exc)) from exc
        return raw

    async def _encode(self, key: str, value: Any) -> str:
        if self._mode is StoreMode.OVERWRITE:
            return serialize(value)

        # Fail on an unserializable value before touching the backend.
        serialize(value)
        raw = await self._read_raw(key, BackendWriteError)
        existing = None if raw is None else decode_entry(raw, key=key, mode=self._mode)
        return encode_append(existing, value)

    async def _write(self, key: str, payload: str, ex: int | None = None) -> None:
        try:
            await self._call(self._client.set(key, payload.encode("utf-8"), ex=ex))
        except (RedisError, PortTimeoutError) as exc:
            logger.error("Redis SET failed for key=%s: %s", key, exc)
            raise BackendWriteError(_BACKEND, key, str(exc)) from exc

    async def set(self, key: str, value: Any) -> None:
        """Store a value (replacing or appending, per mode). Clears any TTL."""
        payload = await self._encode(key, value)
        await self._write(key, payload)
        logger.debug("Redis set key=%s", key)

    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Single SET with EX, so value and TTL land together.

        ttl 0 deletes the key instead: the entry would be expired on arrival.
        """
        validate_ttl(ttl_seconds)
        if ttl_seconds == 0:
            serialize(value)
            try:
                await self._call(self._client.delete(key))
            except (RedisError, PortTimeoutError) as exc:
                logger.error("Redis DEL failed for key=%s: %s", key, exc)
                raise BackendWriteError(_BACKEND, key, str(exc)) from exc
            return
        payload = await self._encode(key, value)
        await self._write(key, payload, ex=ttl_seconds)
        logger.debug("Redis set key=%s ttl=%ds", key, ttl_seconds)

    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Issue EXPIRE; a missing key is left missing."""
        validate_ttl(ttl_seconds)
        try:
            await self._call(self._client.expire(key, ttl_seconds))
        except (RedisError, PortTimeoutError) as exc:
            logger.error("Redis EXPIRE failed for key=%s: %s", key, exc)
            raise BackendWriteError(_BACKEND, key, str(exc)) from exc

    async def get(self, key: str) -> Any | None:
        """Single GET; a key that expired just before the call reads as None."""
        raw = await self._read_raw(key, BackendReadError)
        if raw is None:
            return None
        return decode_entry(raw, key=key, mode=self._mode)

    async def delete(self, key: str) -> None:
        """Delete a value by key (no-op if absent)."""
        try:
            await self._call(self._client.delete(key))
        except (RedisError, PortTimeoutError) as exc:
            logger.error("Redis DEL failed for key=%s: %s", key, exc)
            raise BackendDeleteError(_BACKEND, key, str(exc)) from exc

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()
