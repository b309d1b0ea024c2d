"""Shared fixtures for rate limiter tests."""

import time
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_redis():
    """Create a mock Redis client for testing.

    ``eval`` executes the token bucket script semantics against an
    in-memory hash table. It never awaits, so each call is atomic with
    respect to other tasks on the event loop, like a Lua script in Redis.
    """
    redis = MagicMock()
    redis.hashes = {}
    redis.ttls = {}

    async def mock_eval(script, num_keys, *args):
        """Mock Redis Lua script execution for TOKEN_BUCKET_SCRIPT.

        - KEYS[1]: bucket key
        - ARGV[1]: capacity
        - ARGV[2]: refill rate
        - ARGV[3]: now
        - ARGV[4]: ttl
        """
        key = args[0]
        capacity = float(args[1])
        rate = float(args[2])
        now = float(args[3])
        ttl = int(args[4])

        if key in redis.ttls and redis.ttls[key] < time.time():
            redis.hashes.pop(key, None)
            redis.ttls.pop(key, None)

        fields = redis.hashes.get(key, {})
        tokens = float(fields[b"tokens"]) if b"tokens" in fields else capacity
        last_refill = float(fields[b"last_refill"]) if b"last_refill" in fields else now

        if now > last_refill:
            tokens = min(capacity, tokens + (now - last_refill) * rate)
            last_refill = now

        allowed = 0
        if tokens >= 1.0:
            tokens -= 1.0
            allowed = 1

        redis.hashes[key] = {
            b"tokens": repr(tokens).encode(),
            b"last_refill": repr(last_refill).encode(),
        }
        redis.ttls[key] = time.time() + ttl
        redis.last_ttl = ttl
        return allowed

    async def mock_delete(key):
        existed = key in redis.hashes
        redis.hashes.pop(key, None)
        redis.ttls.pop(key, None)
        return 1 if existed else 0

    async def mock_hgetall(key):
        return dict(redis.hashes.get(key, {}))

    redis.eval = AsyncMock(side_effect=mock_eval)
    redis.delete = AsyncMock(side_effect=mock_delete)
    redis.hgetall = AsyncMock(side_effect=mock_hgetall)
    redis.aclose = AsyncMock()
    return redis
