"""JSON serialization for stored values.

Both backends hand opaque JSON text to the remote store. Failures always
raise; no default value is substituted for data that cannot be encoded or
decoded.
"""

from __future__ import annotations

import json
from typing import Any

from valence.shared.errors import DeserializationError, SerializationError


def serialize(value: Any) -> str:
    """Encode a value as compact JSON text. Raises SerializationError."""
    try:
        return json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Data serialization failed: {exc}") from exc


def deserialize(raw: str | bytes, *, key: str = "") -> Any:
    """Decode JSON text (or UTF-8 bytes). Raises DeserializationError."""
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as exc:
        raise DeserializationError(f"Data deserialization failed: {exc}", key=key) from exc
