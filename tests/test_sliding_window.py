"""Tests for the sliding window log algorithm."""

import pytest

from ratelimiter.app.limiters import RateLimitConfig, SlidingWindow


class TestSlidingWindow:
    """Tests for in-memory sliding window."""

    @pytest.fixture
    def limiter(self, clock):
        return SlidingWindow(RateLimitConfig(3, 0.5), clock=clock)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, limiter):
        for _ in range(3):
            assert await limiter.allow_request("user1") is True

        assert await limiter.allow_request("user1") is False

    @pytest.mark.asyncio
    async def test_slides_after_window(self, limiter, clock):
        """Test that requests become available as old ones slide out."""
        for _ in range(4):
            await limiter.allow_request("user1")

        clock.advance(0.6)

        assert await limiter.allow_request("user1") is True

    @pytest.mark.asyncio
    async def test_exact_rolling_window(self, clock):
        """Test that only timestamps strictly older than the window expire."""
        limiter = SlidingWindow(RateLimitConfig(3, 1.0), clock=clock)
        assert await limiter.allow_request("u") is True   # t=1000.0
        clock.advance(0.25)
        assert await limiter.allow_request("u") is True   # t=1000.25
        clock.advance(0.25)
        assert await limiter.allow_request("u") is True   # t=1000.5

        clock.advance(0.5)  # t=1001.0, first request exactly one window old
        assert await limiter.allow_request("u") is False

        clock.advance(0.125)  # first request now outside the window
        assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is False

    @pytest.mark.asyncio
    async def test_no_boundary_burst(self, limiter, clock):
        """Test that any window-length interval admits at most capacity."""
        clock.advance(0.45)
        admitted = sum([await limiter.allow_request("user1") for _ in range(3)])
        clock.advance(0.1)
        admitted += sum([await limiter.allow_request("user1") for _ in range(3)])

        assert admitted == 3

    @pytest.mark.asyncio
    async def test_log_never_exceeds_capacity(self, limiter, clock):
        for _ in range(50):
            await limiter.allow_request("user1")
            clock.advance(0.01)

        state = limiter._store.get("user1")
        assert len(state.timestamps) <= 3
