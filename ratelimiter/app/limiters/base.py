"""Limiter configuration and the contract every limiter implements."""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Optional, Union

from ratelimiter.app.exceptions import ConfigurationError

if TYPE_CHECKING:
    from ratelimiter.app.core.config import Settings
    from ratelimiter.app.core.metrics import MetricsCollector


@dataclass(frozen=True)
class RateLimitConfig:
    """Immutable limiter parameters shared by all algorithms.

    Attributes:
        capacity: Requests admitted per window
        window: Window length in seconds (a timedelta is accepted and converted)
    """
    capacity: int
    window: Union[float, timedelta]

    def __post_init__(self) -> None:
        window = self.window
        if isinstance(window, timedelta):
            window = window.total_seconds()
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise ConfigurationError(f"capacity must be an integer, got {self.capacity!r}")
        if self.capacity < 1:
            raise ConfigurationError("capacity must be at least 1")
        if isinstance(window, bool) or not isinstance(window, (int, float)):
            raise ConfigurationError(f"window must be a number of seconds, got {window!r}")
        if not window > 0:
            raise ConfigurationError("window must be positive")
        object.__setattr__(self, "window", float(window))

    @classmethod
    def per_second(cls, capacity: int) -> "RateLimitConfig":
        return cls(capacity, 1.0)

    @classmethod
    def per_minute(cls, capacity: int) -> "RateLimitConfig":
        return cls(capacity, 60.0)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RateLimitConfig":
        return cls(settings.rate_limit_capacity, settings.rate_limit_window_seconds)

    @property
    def window_seconds(self) -> float:
        return self.window

    @property
    def rate(self) -> float:
        """Refill (or leak) rate in requests per second."""
        return self.capacity / self.window

    @property
    def ttl_seconds(self) -> int:
        """Expiry for remote records: twice the window, at least one second."""
        return max(1, math.ceil(2 * self.window))


class RateLimiter(ABC):
    """Abstract base class for rate limiters.

    Callers hold a limiter behind this interface and may swap algorithms,
    or local state for shared state, without code changes. Every
    implementation is safe to share between threads and tasks.
    """

    algorithm: str = "unknown"
    backend: str = "local"

    def __init__(
        self,
        config: RateLimitConfig,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.config = config
        self._metrics = metrics

    async def allow_request(self, key: str) -> bool:
        """Check whether one request for ``key`` is admitted.

        The decision mutates the key's state; a denied request consumes
        nothing.

        Raises:
            BackendUnavailable: Remote limiter only, when the store cannot
                be reached within the configured timeout.
        """
        start = time.perf_counter()
        allowed = await self._check(key)
        await self._record(allowed, start)
        return allowed

    async def check_with_fallback(self, key: str) -> bool:
        """Check admission without ever raising for backend failures.

        Local limiters cannot fail, so this is ``allow_request``.
        """
        return await self.allow_request(key)

    @abstractmethod
    async def _check(self, key: str) -> bool:
        """Apply the algorithm to ``key`` and return the decision."""
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget all state for ``key``. Idempotent."""
        pass

    async def cleanup(self) -> int:
        """Drop idle state. Returns the number of keys removed."""
        return 0

    async def close(self) -> None:
        """Release any resources held by the limiter."""
        pass

    async def _record(self, allowed: bool, start: float) -> None:
        if self._metrics is not None:
            await self._metrics.record_request(allowed, time.perf_counter() - start)
