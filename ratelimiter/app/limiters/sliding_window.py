"""Sliding window log.

Keeps the timestamp of every admitted request inside the trailing window,
which gives an exact rolling limit at the cost of O(capacity) memory per
key.
"""

from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.models import RequestLog


class SlidingWindow(LocalRateLimiter[RequestLog]):
    """In-memory sliding window log limiter."""

    algorithm = "sliding_window"

    def _new_state(self, now: float) -> RequestLog:
        return RequestLog()

    def _is_idle(self, state: RequestLog, now: float) -> bool:
        return not state.timestamps or now - state.timestamps[-1] > self.config.window

    def _decide(self, state: RequestLog, now: float) -> bool:
        timestamps = state.timestamps
        while timestamps and now - timestamps[0] > self.config.window:
            timestamps.popleft()

        if len(timestamps) < self.config.capacity:
            timestamps.append(now)
            return True
        return False
