"""FastAPI application factory for the storage gateway.

- Data API: /set_data, /get_data, /del_data (signature-protected)
- healthz, metrics: exempt from signature checks
- ValenceError subclasses map to HTTP status codes with a uniform
  {"error": <code>, "message": <text>} body
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from valence.gateway.api.data import create_data_router
from valence.gateway.metrics.golden_signals import golden_signals_middleware
from valence.gateway.middleware.signature import (
    SignatureAuthMiddleware,
    SignatureVerifier,
    verify_signature,
)
from valence.shared.errors import (
    BackendError,
    InvalidSignatureError,
    NotFoundError,
    PortTimeoutError,
    ValenceError,
    ValidationError,
)
from valence.shared.logging.error_handler import log_structured_error

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from valence.ports.storage_port import KvStorePort

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = frozenset(
    {
        "/healthz",
        "/metrics",
        "/docs",
        "/openapi.json",
        "/redoc",
    }
)


def _error_response(status_code: int, exc: ValenceError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": str(exc)},
    )


def create_app(
    *,
    store: KvStorePort | None = None,
    verifier: SignatureVerifier = verify_signature,
    cors_origins: list[str] | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store serving the data routes. When None, the lifespan is
            expected to set ``app.state.store`` on startup.
        verifier: Signature check ``(public_key, message, signature) -> bool``.
        cors_origins: Allowed CORS origins. Falls back to CORS_ORIGINS env var.
        lifespan: Async context manager factory for startup/shutdown lifecycle.

    Returns:
        Configured FastAPI application.
    """
    origins = cors_origins or [
        o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
    ]

    app = FastAPI(
        title="Valence Storage API",
        description="Signed key-value storage over MongoDB or Redis",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = store
    auth = SignatureAuthMiddleware(verifier=verifier, exempt_paths=list(_EXEMPT_PATHS))

    # -- Error handlers --

    @app.exception_handler(InvalidSignatureError)
    async def _invalid_signature(_: Request, exc: InvalidSignatureError) -> JSONResponse:
        return _error_response(401, exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(422, exc)

    @app.exception_handler(BackendError)
    async def _backend_error(request: Request, exc: BackendError) -> JSONResponse:
        log_structured_error(logger, exc, context={"path": request.url.path})
        return _error_response(503, exc)

    @app.exception_handler(PortTimeoutError)
    async def _timeout_error(request: Request, exc: PortTimeoutError) -> JSONResponse:
        log_structured_error(logger, exc, context={"path": request.url.path})
        return _error_response(503, exc)

    @app.exception_handler(ValenceError)
    async def _valence_error(request: Request, exc: ValenceError) -> JSONResponse:
        log_structured_error(logger, exc, context={"path": request.url.path})
        return _error_response(500, exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        )
        return _error_response(422, ValidationError(detail or "Invalid request"))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        code_map = {
            404: "NOT_FOUND",
            405: "METHOD_NOT_ALLOWED",
        }
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": code_map.get(exc.status_code, "HTTP_ERROR"),
                "message": exc.detail or f"HTTP {exc.status_code}",
            },
        )

    # -- Signature middleware (ASGI) --

    @app.middleware("http")
    async def signature_auth_middleware(request: Request, call_next: Any) -> Response:
        path = request.url.path

        # CORS preflight carries no signature headers.
        if request.method == "OPTIONS" or path in _EXEMPT_PATHS:
            return await call_next(request)

        # Unknown paths return 404, not 401.
        route_matched = any(route.matches(request.scope)[0] != Match.NONE for route in app.routes)
        if not route_matched:
            return await call_next(request)

        try:
            signed = auth.authenticate(headers=request.headers, path=path)
        except InvalidSignatureError as exc:
            return _error_response(401, exc)

        if signed is not None:
            request.state.address = signed.address
            request.state.public_key = signed.public_key
        return await call_next(request)

    app.middleware("http")(golden_signals_middleware)

    # Added last so CORS headers also reach 401 responses from the signature check.
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "public_key", "address", "signature"],
        )

    # -- Exempt routes --

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["system"], include_in_schema=False)
    async def metrics() -> Response:
        from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    app.include_router(create_data_router())

    logger.debug("Valence gateway assembled: %d routes", len(app.routes))
    return app
