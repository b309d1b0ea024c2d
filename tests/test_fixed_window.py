"""Tests for the fixed window algorithm."""

import pytest

from ratelimiter.app.limiters import FixedWindow, RateLimitConfig


class TestFixedWindow:
    """Tests for in-memory fixed window."""

    @pytest.fixture
    def limiter(self, clock):
        return FixedWindow(RateLimitConfig(3, 0.5), clock=clock)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_in_same_window(self, limiter):
        for _ in range(3):
            assert await limiter.allow_request("user1") is True

        assert await limiter.allow_request("user1") is False

    @pytest.mark.asyncio
    async def test_resets_on_new_window(self, limiter, clock):
        """Test that a new window ignores the previous count."""
        for _ in range(4):
            await limiter.allow_request("user1")

        clock.advance(0.6)

        assert await limiter.allow_request("user1") is True

    @pytest.mark.asyncio
    async def test_resets_exactly_at_window_length(self, limiter, clock):
        for _ in range(3):
            await limiter.allow_request("user1")

        clock.advance(0.5)

        assert await limiter.allow_request("user1") is True

    @pytest.mark.asyncio
    async def test_lazy_reset_starts_window_at_access_time(self, limiter, clock):
        """Test that an idle key snaps to a window starting at its next check.

        Missed windows are not replayed: the new window begins at the access
        time, not at a multiple of the window length.
        """
        await limiter.allow_request("user1")
        clock.advance(5.25)

        for _ in range(3):
            assert await limiter.allow_request("user1") is True
        assert await limiter.allow_request("user1") is False

        clock.advance(0.25)
        assert await limiter.allow_request("user1") is False

    @pytest.mark.asyncio
    async def test_boundary_allows_twice_capacity(self, limiter, clock):
        """Test the known boundary burst: two full windows back to back."""
        clock.advance(0.25)
        admitted = sum([await limiter.allow_request("user1") for _ in range(3)])
        clock.advance(0.5)
        admitted += sum([await limiter.allow_request("user1") for _ in range(3)])

        assert admitted == 6

    @pytest.mark.asyncio
    async def test_isolated_by_key(self, limiter):
        for _ in range(3):
            await limiter.allow_request("k1")
        assert await limiter.allow_request("k1") is False
        assert await limiter.allow_request("k2") is True
