"""Token bucket algorithm.

Tokens refill continuously at ``capacity / window`` per second up to
``capacity``; each admitted request spends one token. A full bucket allows a
burst of ``capacity`` requests, after which throughput settles at the refill
rate.
"""

from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.models import TokenBucketState


class TokenBucket(LocalRateLimiter[TokenBucketState]):
    """In-memory token bucket limiter."""

    algorithm = "token_bucket"

    def _new_state(self, now: float) -> TokenBucketState:
        return TokenBucketState(tokens=float(self.config.capacity), last_refill=now)

    def _is_idle(self, state: TokenBucketState, now: float) -> bool:
        # A full window refills any bucket completely
        return now - state.last_refill >= self.config.window

    def _decide(self, state: TokenBucketState, now: float) -> bool:
        state.refill(now, float(self.config.capacity), self.config.rate)
        return state.try_consume()
