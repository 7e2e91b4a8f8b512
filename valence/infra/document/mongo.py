"""MongoDB implementation of KvStorePort (durable backend).

Document layout, one per key::

    {"_id": <key>, "data": <JSON text>, "expiry": <UTC datetime, optional>}

Expiry is enforced by a TTL index on ``expiry`` (expireAfterSeconds=0).
MongoDB reaps expired documents in a background pass (roughly every 60s),
so reads also treat ``expiry <= now`` as not found.

Default mode is OVERWRITE (latest snapshot per key). APPEND mode performs the
same non-atomic read-modify-write as the cache store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Self

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from valence.infra.entries import decode_entry, encode_append
from valence.infra.timeout import DEFAULT_TIMEOUT_SECONDS, with_timeout
from valence.ports.storage_port import KvStorePort, StoreMode, validate_ttl
from valence.shared.errors import (
    BackendDeleteError,
    BackendReadError,
    BackendWriteError,
    ConnectionFailedError,
    DeserializationError,
    PortTimeoutError,
)
from valence.shared.serialization import serialize

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from valence.shared.errors import BackendError

logger = logging.getLogger(__name__)

_BACKEND = "mongodb"
_TTL_INDEX_NAME = "expiry_ttl"

DEFAULT_DB_NAME = "default"
DEFAULT_COLLECTION = "default"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MongoDocumentStore(KvStorePort):
    """MongoDB adapter implementing the KvStorePort interface."""

    def __init__(
        self,
        client: Any,
        *,
        db_name: str = DEFAULT_DB_NAME,
        coll_name: str = DEFAULT_COLLECTION,
        mode: StoreMode = StoreMode.OVERWRITE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._db_name = db_name
        self._coll_name = coll_name
        self._mode = mode
        self._timeout = timeout_seconds
        self._clock = clock

    @classmethod
    async def init(
        cls,
        url: str,
        *,
        db_name: str = DEFAULT_DB_NAME,
        coll_name: str = DEFAULT_COLLECTION,
        mode: StoreMode = StoreMode.OVERWRITE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> Self:
        """Connect, ping the server and ensure the TTL index exists."""
        timeout_ms = int(timeout_seconds * 1000)
        try:
            client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
                url,
                tz_aware=True,
                timeoutMS=timeout_ms,
                serverSelectionTimeoutMS=timeout_ms,
            )
        except (PyMongoError, ValueError, TypeError) as exc:
            raise ConnectionFailedError(_BACKEND, f"Invalid MongoDB URL: {exc}") from exc

        store = cls(
            client,
            db_name=db_name,
            coll_name=coll_name,
            mode=mode,
            timeout_seconds=timeout_seconds,
        )
        try:
            await store._call(client.admin.command("ping"))
            await store.ensure_ttl_index()
        except (PyMongoError, PortTimeoutError) as exc:
            await client.close()
            raise ConnectionFailedError(_BACKEND, f"MongoDB unreachable: {exc}") from exc

        logger.info(
            "MongoDB document store connected (db=%s, collection=%s, mode=%s)",
            db_name,
            coll_name,
            mode.value,
        )
        return store

    @property
    def mode(self) -> StoreMode:
        return self._mode

    @property
    def collection(self) -> Any:
        return self._client[self._db_name][self._coll_name]

    async def _call(self, aw: Awaitable[Any]) -> Any:
        return await with_timeout(aw, port_name=_BACKEND, timeout_seconds=self._timeout)

    async def ensure_ttl_index(self) -> None:
        """Create the TTL index on `expiry` (idempotent on the server)."""
        await self._call(
            self.collection.create_index(
                [("expiry", ASCENDING)],
                expireAfterSeconds=0,
                name=_TTL_INDEX_NAME,
            )
        )
        logger.debug("TTL index ensured on %s.%s", self._db_name, self._coll_name)

    def _is_expired(self, key: str, document: dict[str, Any]) -> bool:
        expiry = document.get("expiry")
        if expiry is None:
            return False
        if not isinstance(expiry, datetime):
            msg = f"Invalid expiry field for key {key!r}"
            raise DeserializationError(msg, key=key)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return expiry <= self._clock()

    async def _find_live(self, key: str, error_cls: type[BackendError]) -> dict[str, Any] | None:
        """Fetch the document for key, treating soft-expired ones as absent."""
        try:
            document: dict[str, Any] | None = await self._call(
                self.collection.find_one({"_id": key})
            )
        except (PyMongoError, PortTimeoutError) as exc:
            logger.error("MongoDB find_one failed for key=%s: %s", key, exc)
            raise error_cls(_BACKEND, key, str(exc)) from exc

        if document is None or self._is_expired(key, document):
            return None
        return document

    def _decode(self, key: str, document: dict[str, Any]) -> Any:
        raw = document.get("data")
        if not isinstance(raw, str | bytes):
            msg = f"Document for key {key!r} has no data payload"
            raise DeserializationError(msg, key=key)
        return decode_entry(raw, key=key, mode=self._mode)

    async def _encode(self, key: str, value: Any) -> str:
        if self._mode is StoreMode.OVERWRITE:
            return serialize(value)

        serialize(value)
        document = await self._find_live(key, BackendWriteError)
        existing = None if document is None else self._decode(key, document)
        return encode_append(existing, value)

    async def _replace(self, key: str, document: dict[str, Any]) -> None:
        try:
            await self._call(self.collection.replace_one({"_id": key}, document, upsert=True))
        except (PyMongoError, PortTimeoutError) as exc:
            logger.error("MongoDB replace_one failed for key=%s: %s", key, exc)
            raise BackendWriteError(_BACKEND, key, str(exc)) from exc

    async def set(self, key: str, value: Any) -> None:
        """Upsert the document for key without an expiry."""
        payload = await self._encode(key, value)
        await self._replace(key, {"_id": key, "data": payload})
        logger.debug("MongoDB set key=%s", key)

    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Upsert with `expiry = now + ttl_seconds` for the TTL index."""
        validate_ttl(ttl_seconds)
        payload = await self._encode(key, value)
        expiry = self._clock() + timedelta(seconds=ttl_seconds)
        await self._replace(key, {"_id": key, "data": payload, "expiry": expiry})
        logger.debug("MongoDB set key=%s expiry=%s", key, expiry.isoformat())

    async def get(self, key: str) -> Any | None:
        document = await self._find_live(key, BackendReadError)
        if document is None:
            return None
        return self._decode(key, document)

    async def delete(self, key: str) -> None:
        try:
            await self._call(self.collection.delete_one({"_id": key}))
        except (PyMongoError, PortTimeoutError) as exc:
            logger.error("MongoDB delete_one failed for key=%s: %s", key, exc)
            raise BackendDeleteError(_BACKEND, key, str(exc)) from exc

    async def close(self) -> None:
        await self._client.close()
