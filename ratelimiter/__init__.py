"""Distributed rate limiter.

Four interchangeable in-process algorithms and a Redis-backed token bucket
behind one ``RateLimiter`` contract.
"""

from ratelimiter.app.exceptions import (
    BackendUnavailable,
    ConfigurationError,
    RateLimiterError,
    RateLimitExceededError,
)
from ratelimiter.app.limiters import (
    AlgorithmType,
    FixedWindow,
    LeakyBucket,
    RateLimitConfig,
    RateLimiter,
    SlidingWindow,
    TokenBucket,
    create_limiter,
    create_limiter_from_settings,
)
from ratelimiter.app.services.distributed_limiter import (
    DistributedRateLimiter,
    InMemoryAtomicBackend,
    RedisScriptBackend,
)

__version__ = "0.1.0"

__all__ = [
    "RateLimitConfig",
    "RateLimiter",
    "TokenBucket",
    "LeakyBucket",
    "FixedWindow",
    "SlidingWindow",
    "AlgorithmType",
    "create_limiter",
    "create_limiter_from_settings",
    "DistributedRateLimiter",
    "InMemoryAtomicBackend",
    "RedisScriptBackend",
    "RateLimiterError",
    "ConfigurationError",
    "BackendUnavailable",
    "RateLimitExceededError",
]
