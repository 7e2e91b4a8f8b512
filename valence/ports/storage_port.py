"""KvStorePort - backend-agnostic key-value storage contract.

Two adapters implement it:
    MongoDocumentStore - durable, expiry via a TTL index (OVERWRITE by default)
    RedisCacheStore    - ephemeral, expiry via native EXPIRE (APPEND by default)

Callers depend only on this module; the concrete adapter is chosen once at
startup from the connection URL (see valence.infra.factory).

Append mode is a read-modify-write over two remote calls. Concurrent
appenders to the same key can lose an update; the store adds no locking.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Any, Self

from valence.shared.errors import ValidationError


class StoreMode(enum.Enum):
    """How `set` treats an existing value under the same key."""

    OVERWRITE = "overwrite"
    APPEND = "append"


def validate_ttl(ttl_seconds: int) -> int:
    """Reject non-integer or negative ttl. Zero means expire immediately."""
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        msg = "ttl_seconds must be an integer"
        raise ValidationError(msg, field="ttl_seconds")
    if ttl_seconds < 0:
        msg = "ttl_seconds must be >= 0"
        raise ValidationError(msg, field="ttl_seconds")
    return ttl_seconds


class KvStorePort(ABC):
    """Port: key-value persistence with optional expiry."""

    @classmethod
    @abstractmethod
    async def init(cls, url: str, **options: Any) -> Self:
        """Connect to the backend at `url` and return a reusable store.

        Raises:
            ConnectionFailedError: URL malformed or backend unreachable.
        """

    @property
    @abstractmethod
    def mode(self) -> StoreMode:
        """The StoreMode in effect for this store."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a value under key (replace or append, per mode).

        A plain set leaves the entry without expiry.

        Raises:
            SerializationError: value cannot be encoded; nothing is written.
            BackendWriteError: the remote write failed or timed out.
        """

    @abstractmethod
    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None:
        """As `set`, then expire the entry `ttl_seconds` from now.

        Raises:
            ValidationError: ttl_seconds is negative.
            SerializationError / BackendWriteError: as `set`.
        """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value (or list, in APPEND mode), None if absent or expired.

        Raises:
            BackendReadError: the remote read failed or timed out.
            DeserializationError: the stored payload is corrupt.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key. Deleting a missing key is not an error.

        Raises:
            BackendDeleteError: the remote delete failed or timed out.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the backend connection."""


class ExpiringStorePort(KvStorePort):
    """Port extension: stores with a native per-key expiry command."""

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Set or refresh the expiry on an existing key without rewriting it.

        Raises:
            ValidationError: ttl_seconds is negative.
            BackendWriteError: the remote command failed or timed out.
        """
