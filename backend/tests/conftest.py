"""Pytest fixtures for backend tests."""
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from plinko.main import app
from plinko.redis_service import RedisService


# Vector published with the engine; values below must never change.
VECTOR = {
    "server_seed": "b2a5f3f32a4d9c6ee7a8c1d33456677890abcdeffedcba0987654321ffeeddcc",
    "client_seed": "candidate-hello",
    "nonce": "42",
    "drop_column": 6,
    "commit_hash": "bb9acdc67f3f18f3345236a01f0e5072596657a9005c7d8a22cff061451a6b34",
    "combined_seed": "e1dddf77de27d395ea2be2ed49aa2a59bd6bf12ee8d350c16c008abd406c07e0",
    "peg_map_hash": "21296c4b32a9cf0993d6988835d5a109d3337791239f411384794251c51e7784",
    "bin_index": 6,
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (many engine rounds)"
    )


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self._last_set_ex: int | None = None

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(
        self, key: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and key in self._store:
            return None
        self._store[key] = value
        self._last_set_ex = ex
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def eval(self, script: str, numkeys: int, *args) -> int:
        """
        Simplified compare-and-delete for RELEASE_LOCK_SCRIPT.

        KEYS[1] = args[0], ARGV[1] = args[1].
        """
        key = args[0]
        expected_value = args[1]
        if self._store.get(key) == expected_value:
            del self._store[key]
            return 1
        return 0

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self._zsets.setdefault(key, {})
        added = len([m for m in mapping if m not in zset])
        zset.update(mapping)
        return added

    async def zrange(
        self, key: str, start: int, end: int, desc: bool = False
    ) -> list[str]:
        zset = self._zsets.get(key, {})
        members = sorted(zset, key=lambda m: zset[m], reverse=desc)
        stop = None if end == -1 else end + 1
        return members[start:stop]

    async def zrem(self, key: str, *members: str) -> int:
        zset = self._zsets.get(key, {})
        removed = [m for m in members if m in zset]
        for member in removed:
            del zset[member]
        return len(removed)

    async def zremrangebyscore(self, key: str, min: float | str, max: float | str) -> int:
        low, high = float(min), float(max)
        zset = self._zsets.get(key, {})
        removed = [m for m, score in zset.items() if low <= score <= high]
        for member in removed:
            del zset[member]
        return len(removed)

    async def aclose(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self._zsets.clear()
        self._last_set_ex = None


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event in memory."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


@pytest.fixture
def vector() -> dict[str, Any]:
    """Published engine test vector."""
    return dict(VECTOR)


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def redis_service_with_mock(mock_redis: MockRedis) -> Generator[RedisService, None, None]:
    """Create RedisService with mock client."""
    service = RedisService()
    service._client = mock_redis
    yield service
    mock_redis.clear()


@pytest.fixture
def client_with_mock_redis(mock_redis: MockRedis) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis."""
    from plinko.redis_service import redis_service

    original_client = redis_service._client
    redis_service._client = mock_redis

    with TestClient(app) as client:
        yield client

    redis_service._client = original_client
    mock_redis.clear()


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Swap the global telemetry sink for a recording one."""
    from plinko.telemetry import LoggingTelemetrySink, telemetry_service

    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(LoggingTelemetrySink())


@pytest.fixture
def test_client() -> TestClient:
    """Create basic TestClient (for tests that don't need Redis)."""
    return TestClient(app)
