"""Tests for the backend call timeout wrapper."""

from __future__ import annotations

import asyncio

import pytest

from valence.infra.timeout import with_timeout
from valence.shared.errors import ErrorKind, PortTimeoutError


async def _slow(seconds: float) -> str:
    await asyncio.sleep(seconds)
    return "done"


@pytest.mark.unit
class TestWithTimeout:
    async def test_returns_result_within_deadline(self) -> None:
        assert await with_timeout(_slow(0), port_name="redis", timeout_seconds=1.0) == "done"

    async def test_raises_port_timeout(self) -> None:
        with pytest.raises(PortTimeoutError) as exc_info:
            await with_timeout(_slow(1.0), port_name="mongodb", timeout_seconds=0.01)
        assert exc_info.value.port_name == "mongodb"
        assert exc_info.value.timeout_ms == 10
        assert exc_info.value.kind is ErrorKind.TIMEOUT

    async def test_propagates_inner_errors(self) -> None:
        async def _boom() -> None:
            raise RuntimeError("backend exploded")

        with pytest.raises(RuntimeError, match="backend exploded"):
            await with_timeout(_boom(), port_name="redis")
