"""Redis round store and per-round locking."""
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis

from plinko.config import settings
from plinko.errors import ErrorCode, GameError
from plinko.protocol import RoundRecord, RoundStatus


logger = logging.getLogger(__name__)


@dataclass
class LockMetrics:
    """Metrics from lock acquisition for telemetry."""

    acquire_ms: float


class RedisService:
    """Redis client for round records and round locking."""

    # Key prefixes
    ROUND_PREFIX = "round:"
    LOCK_PREFIX = "lock:round:"
    REVEALED_INDEX = "rounds:revealed"

    # TTLs in seconds
    ROUND_TTL = settings.round_ttl_seconds
    LOCK_TTL = settings.round_lock_ttl_seconds

    # Lua script for token-safe lock release (compare-and-delete)
    RELEASE_LOCK_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, redis_url: str | None = None):
        self._url = redis_url or settings.redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected")
        return self._client

    async def save_round(self, record: RoundRecord) -> None:
        """Store round record with TTL; revealed rounds are also indexed."""
        key = f"{self.ROUND_PREFIX}{record.id}"
        await self.client.setex(key, self.ROUND_TTL, record.model_dump_json())
        if record.status == RoundStatus.REVEALED:
            await self.client.zadd(
                self.REVEALED_INDEX, {record.id: record.createdAt.timestamp()}
            )
            # Records live ROUND_TTL; older index entries point at nothing
            await self.client.zremrangebyscore(
                self.REVEALED_INDEX, "-inf", time.time() - self.ROUND_TTL
            )

    async def get_round(self, round_id: str) -> RoundRecord | None:
        """Load a round. Returns None if unknown or expired."""
        key = f"{self.ROUND_PREFIX}{round_id}"
        cached = await self.client.get(key)
        if cached is None:
            return None
        return RoundRecord.model_validate_json(cached)

    async def list_revealed(self, limit: int) -> list[RoundRecord]:
        """Most recent revealed rounds, newest first."""
        round_ids = await self.client.zrange(
            self.REVEALED_INDEX, 0, limit - 1, desc=True
        )
        rounds = []
        expired = []
        for round_id in round_ids:
            record = await self.get_round(round_id)
            if record is None:
                expired.append(round_id)
                continue
            rounds.append(record)
        if expired:
            logger.debug("Dropping %d expired rounds from revealed index", len(expired))
            await self.client.zrem(self.REVEALED_INDEX, *expired)
        return rounds

    async def acquire_round_lock(self, round_id: str) -> str | None:
        """
        Attempt to acquire per-round lock with unique token.

        Returns token string if lock acquired, None if already locked.
        """
        key = f"{self.LOCK_PREFIX}{round_id}"
        token = str(uuid.uuid4())
        acquired = await self.client.set(key, token, nx=True, ex=self.LOCK_TTL)
        return token if acquired is True else None

    async def release_round_lock(self, round_id: str, token: str) -> bool:
        """
        Release per-round lock only if token matches.

        Returns True if lock was released, False if token didn't match.
        """
        key = f"{self.LOCK_PREFIX}{round_id}"
        result = await self.client.eval(self.RELEASE_LOCK_SCRIPT, 1, key, token)
        return result == 1

    @asynccontextmanager
    async def round_lock(self, round_id: str):
        """
        Context manager for round lock.

        Raises ROUND_IN_PROGRESS if lock cannot be acquired.
        Yields LockMetrics for telemetry.
        """
        t0 = time.monotonic()
        token = await self.acquire_round_lock(round_id)
        if token is None:
            raise GameError(
                ErrorCode.ROUND_IN_PROGRESS,
                "Round is already being started.",
            )
        metrics = LockMetrics(acquire_ms=(time.monotonic() - t0) * 1000)
        try:
            yield metrics
        finally:
            await self.release_round_lock(round_id, token)


# Global instance
redis_service = RedisService()
