"""Common machinery for limiters whose state lives in this process."""

import time
from abc import abstractmethod
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

from ratelimiter.app.core.logging import get_log_context, get_logger
from ratelimiter.app.limiters.base import RateLimitConfig, RateLimiter
from ratelimiter.app.limiters.store import LocalStateStore

if TYPE_CHECKING:
    from ratelimiter.app.core.metrics import MetricsCollector

logger = get_logger(__name__)

S = TypeVar("S")


class LocalRateLimiter(RateLimiter, Generic[S]):
    """Base class for in-process limiters.

    Subclasses describe their state (``_new_state``, ``_is_idle``) and the
    decision (``_decide``). This class runs the decision for one key as a
    single critical section under the store lock, with the clock read
    inside it so that per-key timestamps never go backwards.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
        max_entries: Optional[int] = None,
    ):
        """Initialize the limiter.

        Args:
            config: Capacity and window
            metrics: Optional sink notified after every decision
            clock: Time source in seconds (monotonic by default)
            max_entries: Maximum number of keys kept in memory (None = unbounded)
        """
        super().__init__(config, metrics)
        self._clock = clock
        self._store: LocalStateStore[S] = LocalStateStore(
            self._new_state, self._is_idle, max_entries
        )

    async def _check(self, key: str) -> bool:
        with self._store.lock:
            now = self._clock()
            state = self._store.get_or_create(key, now)
            allowed = self._decide(state, now)
        logger.debug(
            f"Rate limit decision for {key}: {'allowed' if allowed else 'blocked'}",
            extra=get_log_context(
                rate_limit_key=key, algorithm=self.algorithm, backend=self.backend, allowed=allowed
            ),
        )
        return allowed

    async def reset(self, key: str) -> None:
        with self._store.lock:
            self._store.discard(key)

    async def cleanup(self) -> int:
        """Drop state for keys that would behave exactly like unseen keys."""
        with self._store.lock:
            removed = self._store.purge(self._clock())
        if removed:
            logger.debug(f"Removed {removed} idle {self.algorithm} keys")
        return removed

    def tracked_keys(self) -> int:
        """Number of keys currently holding state."""
        with self._store.lock:
            return len(self._store)

    @abstractmethod
    def _new_state(self, now: float) -> S:
        pass

    @abstractmethod
    def _is_idle(self, state: S, now: float) -> bool:
        pass

    @abstractmethod
    def _decide(self, state: S, now: float) -> bool:
        """Update ``state`` for time ``now`` and admit or deny one request."""
        pass
