"""Tests for structured error logging.

Verifies: error_code, error_kind, stack_trace, context in structured logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from valence.shared.errors import BackendWriteError, ValenceError
from valence.shared.logging.error_handler import (
    StructuredError,
    _redact_sensitive,
    create_structured_error,
    log_structured_error,
)

if TYPE_CHECKING:
    import pytest

_REDACTED = "[REDACTED]"


class TestRedactSensitive:
    def test_redacts_signature_material(self) -> None:
        result = _redact_sensitive({"signature": "ab12", "public_key": "cd34", "path": "/get_data"})
        assert result["signature"] == _REDACTED
        assert result["public_key"] == _REDACTED
        assert result["path"] == "/get_data"

    def test_redacts_connection_url(self) -> None:
        result = _redact_sensitive({"url": "mongodb://user:pw@db:27017"})
        assert result["url"] == _REDACTED

    def test_redacts_nested(self) -> None:
        result = _redact_sensitive({"outer": {"password": "secret"}})
        assert result["outer"]["password"] == _REDACTED

    def test_preserves_non_sensitive(self) -> None:
        result = _redact_sensitive({"key": "session:42", "count": 42})
        assert result == {"key": "session:42", "count": 42}


class TestCreateStructuredError:
    def test_from_generic_exception(self) -> None:
        exc = ValueError("bad value")
        try:
            raise exc
        except ValueError:
            result = create_structured_error(exc)
        assert result.error_code == "ValueError"
        assert result.error_kind == "UNCLASSIFIED"
        assert "bad value" in result.stack_trace

    def test_from_valence_error(self) -> None:
        exc = BackendWriteError("redis", "k", "connection reset")
        try:
            raise exc
        except ValenceError:
            result = create_structured_error(exc)
        assert result.error_code == "BACKEND_WRITE_FAILED"
        assert result.error_kind == "BACKEND_WRITE_FAILED"
        assert "connection reset" in result.message

    def test_custom_error_code_overrides(self) -> None:
        result = create_structured_error(ValueError("x"), error_code="CUSTOM_CODE")
        assert result.error_code == "CUSTOM_CODE"


class TestStructuredErrorToDict:
    def test_to_dict_redacts_sensitive(self) -> None:
        se = StructuredError(
            error_code="TEST",
            error_kind="GENERIC",
            message="test",
            stack_trace="...",
            context={"signature": "abc", "path": "/set_data"},
        )
        d = se.to_dict()
        assert d["context"]["signature"] == _REDACTED
        assert d["context"]["path"] == "/set_data"
        assert d["error_kind"] == "GENERIC"


class TestLogStructuredError:
    def test_logs_at_error_level(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("test.structured")
        exc = ValueError("test error")
        with caplog.at_level(logging.ERROR, logger="test.structured"):
            result = log_structured_error(test_logger, exc, context={"path": "/get_data"})
        assert result.error_code == "ValueError"
        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].structured_error["context"] == {"path": "/get_data"}
