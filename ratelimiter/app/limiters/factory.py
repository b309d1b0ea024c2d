"""Limiter factory.

This module maps the closed set of algorithm identifiers to limiter
classes and builds limiters from explicit arguments or from settings.
"""

import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional, Type, Union

from ratelimiter.app.core.logging import get_logger
from ratelimiter.app.exceptions import ConfigurationError
from ratelimiter.app.limiters.base import RateLimitConfig, RateLimiter
from ratelimiter.app.limiters.fixed_window import FixedWindow
from ratelimiter.app.limiters.leaky_bucket import LeakyBucket
from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.sliding_window import SlidingWindow
from ratelimiter.app.limiters.token_bucket import TokenBucket

if TYPE_CHECKING:
    from ratelimiter.app.core.config import Settings
    from ratelimiter.app.core.metrics import MetricsCollector

logger = get_logger(__name__)


class AlgorithmType(str, Enum):
    """Supported rate limiting algorithms."""
    TOKEN_BUCKET = "token_bucket"
    LEAKY_BUCKET = "leaky_bucket"
    FIXED_WINDOW = "fixed_window"
    SLIDING_WINDOW = "sliding_window"

    @classmethod
    def parse(cls, value: Union["AlgorithmType", str]) -> "AlgorithmType":
        """Resolve an algorithm identifier, rejecting unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown rate limiting algorithm {value!r} (supported: {supported})"
            ) from None


# Algorithm registry mapping types to classes
_LIMITER_REGISTRY: Dict[AlgorithmType, Type[LocalRateLimiter]] = {
    AlgorithmType.TOKEN_BUCKET: TokenBucket,
    AlgorithmType.LEAKY_BUCKET: LeakyBucket,
    AlgorithmType.FIXED_WINDOW: FixedWindow,
    AlgorithmType.SLIDING_WINDOW: SlidingWindow,
}


def create_limiter(
    algorithm: Union[AlgorithmType, str],
    config: RateLimitConfig,
    metrics: Optional["MetricsCollector"] = None,
    clock: Callable[[], float] = time.monotonic,
    max_entries: Optional[int] = None,
) -> LocalRateLimiter:
    """Create an in-process limiter for the given algorithm.

    Args:
        algorithm: Algorithm identifier (enum member or its value)
        config: Capacity and window
        metrics: Optional metrics sink
        clock: Time source in seconds
        max_entries: Maximum number of keys kept in memory (None = unbounded)

    Raises:
        ConfigurationError: If the algorithm is unknown
    """
    algorithm_type = AlgorithmType.parse(algorithm)
    limiter_class = _LIMITER_REGISTRY[algorithm_type]
    return limiter_class(config, metrics=metrics, clock=clock, max_entries=max_entries)


def create_limiter_from_settings(
    settings: Optional["Settings"] = None,
    metrics: Optional["MetricsCollector"] = None,
) -> RateLimiter:
    """Create the limiter described by settings.

    Uses the Redis-backed token bucket when ``redis_enabled`` is set,
    otherwise the configured in-process algorithm.

    Raises:
        ConfigurationError: If settings are inconsistent
    """
    if settings is None:
        # Import settings here to avoid circular imports
        from ratelimiter.app.core.config import settings
    config = RateLimitConfig.from_settings(settings)
    algorithm_type = AlgorithmType.parse(settings.rate_limit_algorithm)

    if settings.redis_enabled:
        if algorithm_type is not AlgorithmType.TOKEN_BUCKET:
            raise ConfigurationError(
                f"Redis backend supports token_bucket only, got {algorithm_type.value}"
            )
        from ratelimiter.app.services.distributed_limiter import DistributedRateLimiter

        logger.info("Using Redis rate limiter backend")
        return DistributedRateLimiter(
            config,
            redis_url=settings.redis_url,
            key_prefix=settings.rate_limit_key_prefix,
            timeout=settings.redis_timeout_seconds,
            fail_closed=settings.rate_limit_fail_closed,
            metrics=metrics,
        )

    logger.debug(f"Using in-memory {algorithm_type.value} rate limiter backend")
    return create_limiter(
        algorithm_type,
        config,
        metrics=metrics,
        max_entries=settings.rate_limit_max_entries or None,
    )
