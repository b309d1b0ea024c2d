"""Atomic backends for shared token bucket state.

A backend owns the durable bucket records and exposes one indivisible
check-and-update per call. The Redis backend runs it as a Lua script; the
in-memory backend runs it under a lock and serves single-host deployments
and tests.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import redis
import redis.asyncio as aioredis

from ratelimiter.app.core.logging import get_log_context, get_logger
from ratelimiter.app.exceptions import BackendUnavailable, ConfigurationError
from ratelimiter.app.services.distributed_limiter.models import BucketRecord
from ratelimiter.app.services.distributed_limiter.redis_lua import TOKEN_BUCKET_SCRIPT

logger = get_logger(__name__)


class AtomicBackend(ABC):
    """Abstract base class for shared-state backends.

    ``consume_token`` must behave as a single atomic transaction: load the
    record (absent means a full bucket), refill, decide, write back and
    refresh the TTL, with no intermediate state visible to other callers.
    """

    @abstractmethod
    async def consume_token(
        self, key: str, capacity: int, rate: float, now: float, ttl: int
    ) -> bool:
        """Atomically run one token bucket check against ``key``.

        Args:
            key: Record key
            capacity: Bucket size
            rate: Refill rate in tokens per second
            now: Current epoch seconds
            ttl: Record expiry in seconds

        Returns:
            True if a token was consumed.

        Raises:
            BackendUnavailable: If the store cannot complete the transaction.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the record for ``key`` if present."""
        pass

    @abstractmethod
    async def get_record(self, key: str) -> Optional[BucketRecord]:
        """Read the record for ``key`` without modifying it."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


@dataclass
class _StoredRecord:
    """Hash fields plus expiry, mirroring a Redis hash with a TTL."""

    fields: Dict[str, str]
    expires_at: float

    def is_expired(self) -> bool:
        return time.time() > self.expires_at


class InMemoryAtomicBackend(AtomicBackend):
    """In-process backend using the same record layout as Redis.

    Transactions are serialized with an asyncio lock, so every limiter that
    shares one instance within an event loop sees atomic updates. State is
    lost when the process exits.
    """

    def __init__(self) -> None:
        self._data: Dict[str, _StoredRecord] = {}
        self._lock = asyncio.Lock()

    async def consume_token(
        self, key: str, capacity: int, rate: float, now: float, ttl: int
    ) -> bool:
        async with self._lock:
            record = self._load(key)
            if record is None:
                record = BucketRecord.fresh(capacity, now)
            allowed = record.consume(capacity, rate, now)
            self._data[key] = _StoredRecord(
                fields=record.to_mapping(), expires_at=time.time() + ttl
            )
            return allowed

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def get_record(self, key: str) -> Optional[BucketRecord]:
        async with self._lock:
            return self._load(key)

    async def cleanup_expired(self) -> int:
        """Remove all expired records.

        Returns:
            Number of records removed.
        """
        async with self._lock:
            expired_keys = [key for key, entry in self._data.items() if entry.is_expired()]
            for key in expired_keys:
                del self._data[key]
            return len(expired_keys)

    def _load(self, key: str) -> Optional[BucketRecord]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._data[key]
            return None
        return BucketRecord.from_mapping(entry.fields)


class RedisScriptBackend(AtomicBackend):
    """Redis backend running the token bucket as a server-side Lua script.

    Example:
        >>> backend = RedisScriptBackend(redis_url="redis://localhost:6379/0")
        >>> await backend.consume_token("rate_limit:user-1", 10, 10.0, time.time(), 2)
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        redis_url: Optional[str] = None,
        socket_timeout: Optional[float] = None,
    ):
        """Initialize the Redis backend.

        Args:
            redis_client: Optional Redis client instance
            redis_url: Redis connection URL
            socket_timeout: Connect and read timeout for a client built from redis_url

        Raises:
            ConfigurationError: If redis_url cannot be parsed
        """
        if redis_client is None and redis_url is None:
            # Import settings here to avoid circular imports
            from ratelimiter.app.core.config import settings
            redis_url = settings.redis_url
        self._redis = redis_client
        self._redis_url = redis_url
        self._socket_timeout = socket_timeout
        if self._redis is None:
            # No connection is opened until the first command
            try:
                self._get_redis()
            except ValueError as e:
                raise ConfigurationError(f"Invalid Redis URL {redis_url!r}: {e}") from e

    def _get_redis(self) -> Any:
        """Get or create Redis client."""
        if self._redis is None:
            self._redis = aioredis.from_url(
                self._redis_url,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
        return self._redis

    async def consume_token(
        self, key: str, capacity: int, rate: float, now: float, ttl: int
    ) -> bool:
        result = await self._call(
            key,
            "eval",
            TOKEN_BUCKET_SCRIPT,
            1,  # Number of keys
            key,  # KEYS[1]
            capacity,  # ARGV[1]
            rate,  # ARGV[2]
            now,  # ARGV[3]
            ttl,  # ARGV[4]
        )
        return int(result) == 1

    async def delete(self, key: str) -> None:
        await self._call(key, "delete", key)

    async def get_record(self, key: str) -> Optional[BucketRecord]:
        fields = await self._call(key, "hgetall", key)
        if not fields:
            return None
        return BucketRecord.from_mapping(fields)

    async def close(self) -> None:
        if self._redis is not None:
            try:
                await self._redis.aclose()
            except (redis.RedisError, OSError) as e:
                logger.warning(f"Error closing Redis connection: {e}")
            self._redis = None

    async def _call(self, key: str, command: str, *args: Any) -> Any:
        """Run one client command, translating failures to BackendUnavailable."""
        client = self._get_redis()
        try:
            return await getattr(client, command)(*args)
        except redis.ConnectionError as e:
            # Redis unreachable or connection dropped
            logger.error(
                f"Redis connection failed: {e}",
                extra=get_log_context(rate_limit_key=key, backend="redis", reason="connection_error"),
            )
            raise BackendUnavailable("connection_error", f"Redis connection failed: {e}") from e
        except redis.TimeoutError as e:
            logger.warning(
                f"Redis timeout: {e}",
                extra=get_log_context(rate_limit_key=key, backend="redis", reason="timeout"),
            )
            raise BackendUnavailable("timeout", f"Redis timeout: {e}") from e
        except redis.RedisError as e:
            # Script errors and other server-side failures
            logger.error(
                f"Redis error: {e}",
                extra=get_log_context(rate_limit_key=key, backend="redis", reason="redis_error"),
            )
            raise BackendUnavailable("redis_error", f"Redis error: {e}") from e
        except OSError as e:
            logger.error(
                f"Redis socket error: {e}",
                extra=get_log_context(rate_limit_key=key, backend="redis", reason="connection_error"),
            )
            raise BackendUnavailable("connection_error", f"Redis socket error: {e}") from e
