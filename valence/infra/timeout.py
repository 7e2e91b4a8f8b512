"""Backend call timeout wrapper.

- Wraps each remote store call with asyncio.wait_for
- Raises PortTimeoutError on timeout; adapters convert it into the
  read/write/delete failure of the operation in flight
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

from valence.shared.errors import PortTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 5.0


async def with_timeout(  # noqa: UP047
    aw: Awaitable[T],
    *,
    port_name: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> T:
    """Await a backend call, raising PortTimeoutError past the deadline."""
    try:
        return await asyncio.wait_for(aw, timeout=timeout_seconds)
    except TimeoutError:
        raise PortTimeoutError(port_name, int(timeout_seconds * 1000)) from None

