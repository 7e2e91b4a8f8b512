"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit        - No external deps
    @pytest.mark.integration - Needs running Redis / MongoDB
"""

from __future__ import annotations

import pytest

from tests.fakes import FakeClock, FakeMongoClient, FakeRedis


@pytest.fixture
def sample_address() -> str:
    return "0x4f1c2b7d9e8a6c5b3a2f1e0d9c8b7a6f5e4d3c2b"


@pytest.fixture
def fake_redis_client() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_mongo_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
