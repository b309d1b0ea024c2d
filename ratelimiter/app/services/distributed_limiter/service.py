"""Distributed rate limiting for multi-instance deployments.

Applies the token bucket to records shared by every process through an
atomic backend (Redis by default). There is no client-side locking: each
check is one server-side transaction, bounded by a timeout. When the
backend cannot answer, ``check_with_fallback`` substitutes an explicit
policy decision (fail-open unless configured otherwise).
"""

import asyncio
import time
from typing import TYPE_CHECKING, Callable, Optional

from ratelimiter.app.core.logging import get_log_context, get_logger
from ratelimiter.app.exceptions import BackendUnavailable
from ratelimiter.app.limiters.base import RateLimitConfig, RateLimiter
from ratelimiter.app.services.distributed_limiter.backends import (
    AtomicBackend,
    RedisScriptBackend,
)
from ratelimiter.app.services.distributed_limiter.models import BucketRecord

if TYPE_CHECKING:
    from ratelimiter.app.core.metrics import MetricsCollector

logger = get_logger(__name__)


class DistributedRateLimiter(RateLimiter):
    """Token bucket limiter whose state lives in a shared atomic backend.

    Record key format:
    - {key_prefix}:{key} - hash with fields tokens, last_refill
      (decimal strings), expiring after twice the window
    """

    algorithm = "token_bucket"
    backend = "redis"

    DEFAULT_KEY_PREFIX = "rate_limit"
    DEFAULT_TIMEOUT_SECONDS = 0.5

    def __init__(
        self,
        config: RateLimitConfig,
        backend: Optional[AtomicBackend] = None,
        *,
        redis_url: Optional[str] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        fail_closed: bool = False,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the distributed limiter.

        Args:
            config: Capacity and window
            backend: Atomic backend (defaults to Redis at ``redis_url``)
            redis_url: Redis connection URL for the default backend
            key_prefix: Prefix for record keys
            timeout: Upper bound in seconds for one backend call
            fail_closed: Deny instead of admit when the backend is unavailable
            metrics: Optional metrics sink
            clock: Epoch time source; must agree across processes
        """
        super().__init__(config, metrics)
        if backend is None:
            backend = RedisScriptBackend(redis_url=redis_url, socket_timeout=timeout)
        self._backend = backend
        self._key_prefix = key_prefix
        self._timeout = timeout
        self.fail_closed = fail_closed
        self._clock = clock

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    async def _check(self, key: str) -> bool:
        allowed = await self._run(
            key,
            self._backend.consume_token(
                self._make_key(key),
                self.config.capacity,
                self.config.rate,
                self._clock(),
                self.config.ttl_seconds,
            ),
        )
        logger.debug(
            f"Rate limit decision for {key}: {'allowed' if allowed else 'blocked'}",
            extra=get_log_context(
                rate_limit_key=key, algorithm=self.algorithm, backend=self.backend, allowed=allowed
            ),
        )
        return allowed

    async def check_with_fallback(self, key: str) -> bool:
        """Check admission, substituting the fallback policy on backend failure.

        Never raises BackendUnavailable. The failure is logged and counted
        before the fallback decision is returned.
        """
        start = time.perf_counter()
        try:
            allowed = await self._check(key)
        except BackendUnavailable as e:
            allowed = not self.fail_closed
            policy = "fail-closed" if self.fail_closed else "fail-open"
            logger.warning(
                f"Rate limiting {policy} triggered due to {e.reason}. "
                f"Request {'allowed' if allowed else 'denied'} without rate limit check.",
                extra=get_log_context(
                    rate_limit_key=key, backend=self.backend, reason=e.reason, allowed=allowed
                ),
            )
            if self._metrics is not None:
                await self._metrics.record_backend_failure(e.reason)
        await self._record(allowed, start)
        return allowed

    async def reset(self, key: str) -> None:
        """Delete the shared record; the next check starts from a full bucket.

        Raises:
            BackendUnavailable: If the record could not be deleted.
        """
        await self._run(key, self._backend.delete(self._make_key(key)))

    async def get_record(self, key: str) -> Optional[BucketRecord]:
        """Read the shared record for ``key`` (None if absent or expired)."""
        return await self._run(key, self._backend.get_record(self._make_key(key)))

    async def close(self) -> None:
        await self._backend.close()

    async def _run(self, key: str, operation):
        """Await one backend operation under the configured timeout.

        A timed out call is abandoned, not retried.
        Any failure other than BackendUnavailable is reported as
        BackendUnavailable("backend_error").
        """
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout)
        except BackendUnavailable:
            raise
        except asyncio.TimeoutError as e:
            logger.warning(
                f"Rate limit backend did not answer within {self._timeout}s",
                extra=get_log_context(rate_limit_key=key, backend=self.backend, reason="timeout"),
            )
            raise BackendUnavailable(
                "timeout", f"Rate limit backend timed out after {self._timeout}s"
            ) from e
        except Exception as e:
            logger.exception(
                f"Rate limit backend failed: {e}",
                extra=get_log_context(rate_limit_key=key, backend=self.backend, reason="backend_error"),
            )
            raise BackendUnavailable("backend_error", f"Rate limit backend failed: {e}") from e
