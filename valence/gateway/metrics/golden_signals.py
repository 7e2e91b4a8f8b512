"""Golden signals middleware for the storage gateway.

- Latency: request duration histogram (seconds)
- Traffic: request counter
- Errors: error counter (HTTP 5xx, i.e. backend and serialization failures)
- Saturation: in-flight request gauge
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import Request, Response

REQUEST_DURATION = Histogram(
    "valence_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path", "status_code"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

REQUEST_TOTAL = Counter(
    "valence_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

ERROR_TOTAL = Counter(
    "valence_errors_total",
    "Total HTTP error responses (5xx)",
    ["method", "path", "status_code"],
)

ACTIVE_REQUESTS = Gauge(
    "valence_active_requests",
    "Number of in-flight HTTP requests",
    ["method"],
)

_EXEMPT_PATHS = frozenset({"/metrics", "/healthz"})
_KNOWN_PATHS = frozenset({"/set_data", "/get_data", "/del_data"})


def _normalize_path(path: str) -> str:
    """Bucket unknown paths together to bound label cardinality."""
    return path if path in _KNOWN_PATHS else "other"


async def golden_signals_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Collect golden signals for each request."""
    path = request.url.path

    if path in _EXEMPT_PATHS:
        return await call_next(request)

    method = request.method
    normalized = _normalize_path(path)

    ACTIVE_REQUESTS.labels(method=method).inc()
    start = time.monotonic()

    try:
        response = await call_next(request)
    except Exception:
        labels = {"method": method, "path": normalized, "status_code": "500"}
        REQUEST_DURATION.labels(**labels).observe(time.monotonic() - start)
        REQUEST_TOTAL.labels(**labels).inc()
        ERROR_TOTAL.labels(**labels).inc()
        raise
    finally:
        ACTIVE_REQUESTS.labels(method=method).dec()

    status = str(response.status_code)
    labels = {"method": method, "path": normalized, "status_code": status}
    REQUEST_DURATION.labels(**labels).observe(time.monotonic() - start)
    REQUEST_TOTAL.labels(**labels).inc()
    if response.status_code >= 500:
        ERROR_TOTAL.labels(**labels).inc()

    return response
