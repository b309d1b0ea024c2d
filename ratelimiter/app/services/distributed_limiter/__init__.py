"""Distributed rate limiting using Redis for multi-instance deployments.

This package provides an atomic token bucket backed by a Redis Lua script,
an in-process backend with the same record layout, and a limiter with an
explicit fallback policy for when the backend is unavailable.
"""

from .backends import AtomicBackend, InMemoryAtomicBackend, RedisScriptBackend
from .models import BucketRecord
from .redis_lua import TOKEN_BUCKET_SCRIPT
from .service import DistributedRateLimiter

__all__ = [
    "AtomicBackend",
    "InMemoryAtomicBackend",
    "RedisScriptBackend",
    "BucketRecord",
    "TOKEN_BUCKET_SCRIPT",
    "DistributedRateLimiter",
]
