"""Middleware components for the rate limiter."""

from ratelimiter.app.middleware.rate_limit import RateLimitMiddleware, get_client_key

__all__ = [
    "RateLimitMiddleware",
    "get_client_key",
]
