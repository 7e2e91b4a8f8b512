"""Shared Fake adapters for testing without unittest.mock.

All Fake implementations are real Python classes with in-memory state,
no AsyncMock/MagicMock.
"""

from tests.fakes.mongo_client import FakeClock, FakeCollection, FakeMongoClient
from tests.fakes.redis_client import FakeRedis, InterleavingFakeRedis
from tests.fakes.store import RecordingStore

__all__ = [
    "FakeClock",
    "FakeCollection",
    "FakeMongoClient",
    "FakeRedis",
    "InterleavingFakeRedis",
    "RecordingStore",
]
