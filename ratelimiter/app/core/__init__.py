"""Core utilities for the rate limiter."""

from ratelimiter.app.core.config import settings
from ratelimiter.app.core.logging import get_logger, setup_logging
from ratelimiter.app.core.metrics import MetricsCollector

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "MetricsCollector",
]
