"""Per-key state for the local rate limiting algorithms.

Timestamps are plain floats read from the limiter's clock.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque


@dataclass
class TokenBucketState:
    """Token bucket state. Created full."""
    tokens: float
    last_refill: float

    def refill(self, now: float, capacity: float, rate: float) -> None:
        """Add tokens for the time elapsed since the last refill."""
        if now > self.last_refill:
            self.tokens = min(capacity, self.tokens + (now - self.last_refill) * rate)
            self.last_refill = now

    def try_consume(self) -> bool:
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


@dataclass
class LeakyBucketState:
    """Leaky bucket state. Created empty."""
    level: float = 0.0
    last_update: float = 0.0


@dataclass
class WindowState:
    """Fixed window counter."""
    count: int = 0
    window_start: float = 0.0


@dataclass
class RequestLog:
    """Sliding window log of admitted request timestamps, oldest first."""
    timestamps: Deque[float] = field(default_factory=deque)
