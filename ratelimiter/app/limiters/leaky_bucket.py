"""Leaky bucket algorithm.

Each admitted request adds one unit of water; the bucket drains at
``capacity / window`` units per second and never below empty. A request
that would overflow the bucket is denied.
"""

from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.models import LeakyBucketState


class LeakyBucket(LocalRateLimiter[LeakyBucketState]):
    """In-memory leaky bucket limiter."""

    algorithm = "leaky_bucket"

    def _new_state(self, now: float) -> LeakyBucketState:
        return LeakyBucketState(level=0.0, last_update=now)

    def _is_idle(self, state: LeakyBucketState, now: float) -> bool:
        return now - state.last_update >= self.config.window

    def _decide(self, state: LeakyBucketState, now: float) -> bool:
        elapsed = max(0.0, now - state.last_update)
        state.level = max(0.0, state.level - elapsed * self.config.rate)
        state.last_update = now

        if state.level + 1.0 <= self.config.capacity:
            state.level += 1.0
            return True
        return False
