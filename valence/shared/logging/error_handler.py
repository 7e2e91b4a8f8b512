"""Structured error logging handler.

- Error logs contain: error_code, error_kind, stack_trace, context
- Dict output suitable for JSON log aggregation
- Signature material and credentials are redacted
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class StructuredError:
    """Structured representation of an error for logging."""

    error_code: str
    error_kind: str
    message: str
    stack_trace: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict suitable for JSON logging."""
        d = asdict(self)
        d["context"] = _redact_sensitive(d["context"])
        return d


_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "signature",
        "public_key",
        "authorization",
        "credential",
        "url",
    }
)


def _redact_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Redact values of sensitive keys."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in _SENSITIVE_KEYS:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = _redact_sensitive(value)
        else:
            result[key] = value
    return result


def create_structured_error(
    exc: Exception,
    *,
    error_code: str = "",
    context: dict[str, Any] | None = None,
) -> StructuredError:
    """Create a StructuredError from an exception.

    If the exception has `.code` / `.kind` attributes (ValenceError
    subclasses), they are used unless overridden.
    """
    code = error_code or getattr(exc, "code", type(exc).__name__)
    kind = getattr(exc, "kind", None)
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return StructuredError(
        error_code=code,
        error_kind=kind.name if kind is not None else "UNCLASSIFIED",
        message=str(exc),
        stack_trace="".join(stack),
        context=context or {},
    )


def log_structured_error(
    logger: logging.Logger,
    exc: Exception,
    *,
    error_code: str = "",
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> StructuredError:
    """Log an exception as a structured error and return it."""
    structured = create_structured_error(exc, error_code=error_code, context=context)
    logger.log(level, "structured_error", extra={"structured_error": structured.to_dict()})
    return structured
