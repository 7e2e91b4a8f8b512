"""Store selection from a single connection URL.

The scheme decides the backend once, at startup:
    redis://, rediss://, unix://   -> RedisCacheStore
    mongodb://, mongodb+srv://     -> MongoDocumentStore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from valence.infra.cache.redis import RedisCacheStore
from valence.infra.document.mongo import (
    DEFAULT_COLLECTION,
    DEFAULT_DB_NAME,
    MongoDocumentStore,
)
from valence.infra.timeout import DEFAULT_TIMEOUT_SECONDS
from valence.shared.errors import ConnectionFailedError

if TYPE_CHECKING:
    from valence.ports.storage_port import KvStorePort, StoreMode

logger = logging.getLogger(__name__)

REDIS_SCHEMES = frozenset({"redis", "rediss", "unix"})
MONGO_SCHEMES = frozenset({"mongodb", "mongodb+srv"})


def backend_for_url(url: str) -> str:
    """Return "redis" or "mongodb" for a connection URL."""
    scheme = urlsplit(url).scheme.lower()
    if scheme in REDIS_SCHEMES:
        return "redis"
    if scheme in MONGO_SCHEMES:
        return "mongodb"
    raise ConnectionFailedError("store", f"Unsupported store URL scheme: {scheme or '<none>'}")


async def open_store(
    url: str,
    *,
    mode: StoreMode | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    db_name: str = DEFAULT_DB_NAME,
    coll_name: str = DEFAULT_COLLECTION,
) -> KvStorePort:
    """Connect the backend named by `url`. `mode=None` keeps its default.

    Raises:
        ConnectionFailedError: unknown scheme, malformed URL or unreachable backend.
    """
    backend = backend_for_url(url)
    logger.info("Opening %s store", backend)

    options: dict[str, Any] = {"timeout_seconds": timeout_seconds}
    if mode is not None:
        options["mode"] = mode

    if backend == "redis":
        return await RedisCacheStore.init(url, **options)
    return await MongoDocumentStore.init(url, db_name=db_name, coll_name=coll_name, **options)
