"""Encoding of stored entries shared by both store adapters.

OVERWRITE entries hold the serialized value itself. APPEND entries hold a
serialized JSON list, extended by one element per `set`.
"""

from __future__ import annotations

from typing import Any

from valence.ports.storage_port import StoreMode
from valence.shared.errors import DeserializationError
from valence.shared.serialization import deserialize, serialize


def decode_entry(raw: str | bytes, *, key: str, mode: StoreMode) -> Any:
    """Decode a stored payload, checking it has the shape `mode` expects."""
    value = deserialize(raw, key=key)
    if mode is StoreMode.APPEND and not isinstance(value, list):
        msg = f"Expected a list under append-mode key {key!r}, got {type(value).__name__}"
        raise DeserializationError(msg, key=key)
    return value


def encode_append(existing: list[Any] | None, value: Any) -> str:
    """Serialize `existing` with `value` appended (None counts as empty)."""
    entries = list(existing or [])
    entries.append(value)
    return serialize(entries)
