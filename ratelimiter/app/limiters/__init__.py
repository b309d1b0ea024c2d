"""Rate limiting algorithms and the common limiter contract."""

from ratelimiter.app.limiters.base import RateLimitConfig, RateLimiter
from ratelimiter.app.limiters.factory import (
    AlgorithmType,
    create_limiter,
    create_limiter_from_settings,
)
from ratelimiter.app.limiters.fixed_window import FixedWindow
from ratelimiter.app.limiters.leaky_bucket import LeakyBucket
from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.sliding_window import SlidingWindow
from ratelimiter.app.limiters.store import LocalStateStore
from ratelimiter.app.limiters.token_bucket import TokenBucket

__all__ = [
    "RateLimitConfig",
    "RateLimiter",
    "LocalRateLimiter",
    "LocalStateStore",
    "TokenBucket",
    "LeakyBucket",
    "FixedWindow",
    "SlidingWindow",
    "AlgorithmType",
    "create_limiter",
    "create_limiter_from_settings",
]
