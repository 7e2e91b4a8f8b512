"""Application composition root -- wires the store into a runnable FastAPI app.

- Reads configuration from environment variables
- Opens the store named by STORE_URL during the app lifespan (fatal on failure)
- Closes the store connection on shutdown

Entry point: uvicorn valence.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from valence.gateway.app import create_app
from valence.infra.factory import open_store
from valence.infra.timeout import DEFAULT_TIMEOUT_SECONDS
from valence.ports.storage_port import StoreMode

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _parse_mode(raw: str) -> StoreMode | None:
    """STORE_MODE env value -> StoreMode (empty keeps the backend default)."""
    raw = raw.strip().lower()
    if not raw:
        return None
    try:
        return StoreMode(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in StoreMode)
        msg = f"STORE_MODE must be one of: {allowed} (got {raw!r})"
        raise ValueError(msg) from None


def build_app() -> FastAPI:
    """Build the application: read configuration, wire the store lifespan.

    This function is the single composition root.
    """
    # -- Configuration from environment --
    store_url = os.environ.get("STORE_URL", "redis://localhost:6379/0")
    store_mode = _parse_mode(os.environ.get("STORE_MODE", ""))
    timeout_seconds = float(os.environ.get("STORE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    db_name = os.environ.get("MONGO_DB_NAME", "default")
    coll_name = os.environ.get("MONGO_COLLECTION", "default")
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    cors_origins_raw = os.environ.get("CORS_ORIGINS", "")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        # ConnectionFailedError propagates: the service must not start
        # without its store.
        store = await open_store(
            store_url,
            mode=store_mode,
            timeout_seconds=timeout_seconds,
            db_name=db_name,
            coll_name=coll_name,
        )
        application.state.store = store
        logger.info("Store ready (mode=%s)", store.mode.value)
        try:
            yield
        finally:
            try:
                await store.close()
            except Exception:
                logger.debug("Store close failed", exc_info=True)

    application = create_app(cors_origins=cors_origins, lifespan=lifespan)
    logger.info("Valence app assembled: %d routes mounted", len(application.routes))
    return application


app = build_app()
