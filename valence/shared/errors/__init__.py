"""Unified error hierarchy for the Valence storage service.

All domain errors inherit from ValenceError. Every error carries a closed
``ErrorKind`` so callers branch on the kind instead of inspecting messages.
"Not found" is not an error at the store level: stores return ``None``.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Closed set of failure kinds surfaced by the service."""

    GENERIC = "VALENCE_ERROR"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    DESERIALIZATION_FAILED = "DESERIALIZATION_FAILED"
    BACKEND_WRITE_FAILED = "BACKEND_WRITE_FAILED"
    BACKEND_READ_FAILED = "BACKEND_READ_FAILED"
    BACKEND_DELETE_FAILED = "BACKEND_DELETE_FAILED"
    TIMEOUT = "PORT_TIMEOUT"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"


class ValenceError(Exception):
    """Base error for all Valence exceptions."""

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code or self.kind.value
        super().__init__(message)


# -- Connection errors (raised by store init) --


class ConnectionFailedError(ValenceError):
    """Backend unreachable or misconfigured at init. Fatal at startup."""

    kind = ErrorKind.CONNECTION_FAILED

    def __init__(self, backend: str, message: str = "") -> None:
        self.backend = backend
        super().__init__(message or f"Failed to connect to {backend}")


class PortTimeoutError(ValenceError):
    """A backend operation timed out."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, port_name: str, timeout_ms: int) -> None:
        self.port_name = port_name
        self.timeout_ms = timeout_ms
        super().__init__(f"Port {port_name} timed out after {timeout_ms}ms")


# -- Serialization errors --


class SerializationError(ValenceError):
    """Value could not be converted to its wire representation."""

    kind = ErrorKind.SERIALIZATION_FAILED

    def __init__(self, message: str = "Data serialization failed") -> None:
        super().__init__(message)


class DeserializationError(ValenceError):
    """Stored payload could not be converted back into a value."""

    kind = ErrorKind.DESERIALIZATION_FAILED

    def __init__(self, message: str = "Data deserialization failed", key: str = "") -> None:
        self.key = key
        super().__init__(message)


# -- Backend operation errors (retryable by the caller) --


class BackendError(ValenceError):
    """A remote store operation failed."""

    operation = "operation"

    def __init__(self, backend: str, key: str, detail: str = "") -> None:
        self.backend = backend
        self.key = key
        msg = f"{backend} {self.operation} failed for key {key!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class BackendWriteError(BackendError):
    kind = ErrorKind.BACKEND_WRITE_FAILED
    operation = "write"


class BackendReadError(BackendError):
    kind = ErrorKind.BACKEND_READ_FAILED
    operation = "read"


class BackendDeleteError(BackendError):
    kind = ErrorKind.BACKEND_DELETE_FAILED
    operation = "delete"


# -- Auth errors --


class InvalidSignatureError(ValenceError):
    """Request signature missing or failed verification."""

    kind = ErrorKind.INVALID_SIGNATURE

    def __init__(self, message: str = "Invalid signature") -> None:
        super().__init__(message)


# -- Domain errors --


class ValidationError(ValenceError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(ValenceError):
    """Requested resource not found (HTTP layer only)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")


__all__ = [
    "BackendDeleteError",
    "BackendError",
    "BackendReadError",
    "BackendWriteError",
    "ConnectionFailedError",
    "DeserializationError",
    "ErrorKind",
    "InvalidSignatureError",
    "NotFoundError",
    "PortTimeoutError",
    "SerializationError",
    "ValenceError",
    "ValidationError",
]
