"""Integration test conftest - fixtures requiring live services.

Requires:
    - Redis (REDIS_URL, default redis://localhost:6379/15)
    - MongoDB (MONGO_URL, default mongodb://localhost:27017)

Tests skip themselves when the server is unreachable.

Usage:
    pytest tests/integration/ -m integration
"""

from __future__ import annotations

import os
import socket
from urllib.parse import urlsplit

import pytest

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/15")
MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")


def can_connect(url: str, default_port: int) -> bool:
    """Check if a TCP endpoint for the URL is reachable."""
    try:
        parts = urlsplit(url)
        host = parts.hostname or "localhost"
        port = parts.port or default_port
        s = socket.create_connection((host, port), timeout=1)
        s.close()
        return True
    except (OSError, ValueError):
        return False


@pytest.fixture(scope="session")
def redis_url() -> str:
    return REDIS_URL


@pytest.fixture(scope="session")
def mongo_url() -> str:
    return MONGO_URL
