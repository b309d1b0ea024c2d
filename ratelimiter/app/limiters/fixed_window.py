"""Fixed window counter.

Counts admitted requests per key in windows that start at the first
request seen after the previous window expired. Windows are reset lazily
on access, so a key idle for many windows starts a fresh one on its next
check. Two adjacent windows can each admit ``capacity`` requests, allowing
up to twice the capacity across a window boundary.
"""

from ratelimiter.app.limiters.local import LocalRateLimiter
from ratelimiter.app.limiters.models import WindowState


class FixedWindow(LocalRateLimiter[WindowState]):
    """In-memory fixed window limiter."""

    algorithm = "fixed_window"

    def _new_state(self, now: float) -> WindowState:
        return WindowState(count=0, window_start=now)

    def _is_idle(self, state: WindowState, now: float) -> bool:
        return now - state.window_start >= self.config.window

    def _decide(self, state: WindowState, now: float) -> bool:
        if now - state.window_start >= self.config.window:
            state.count = 0
            state.window_start = now

        if state.count < self.config.capacity:
            state.count += 1
            return True
        return False
