"""Tests for the token bucket algorithm."""

import pytest

from ratelimiter.app.limiters import RateLimitConfig, TokenBucket


class TestTokenBucket:
    """Tests for in-memory token bucket."""

    @pytest.fixture
    def limiter(self, clock):
        return TokenBucket(RateLimitConfig.per_second(5), clock=clock)

    @pytest.mark.asyncio
    async def test_allows_burst_up_to_capacity(self, limiter):
        """Test that a fresh bucket admits exactly capacity requests."""
        for _ in range(5):
            assert await limiter.allow_request("u") is True

        assert await limiter.allow_request("u") is False

    @pytest.mark.asyncio
    async def test_refills_after_window(self, limiter, clock):
        """Test that tokens come back at capacity per window."""
        for _ in range(6):
            await limiter.allow_request("u")

        clock.advance(1.0)

        assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is True

    @pytest.mark.asyncio
    async def test_refill_bounded_by_elapsed_time(self, clock):
        """Test partial refill: half a window returns half the tokens."""
        limiter = TokenBucket(RateLimitConfig(4, 1.0), clock=clock)
        for _ in range(4):
            assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is False

        clock.advance(0.5)

        assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is False

    @pytest.mark.asyncio
    async def test_refill_never_exceeds_capacity(self, limiter, clock):
        """Test that a long idle period does not bank extra tokens."""
        await limiter.allow_request("u")
        clock.advance(3600)

        results = [await limiter.allow_request("u") for _ in range(6)]
        assert results == [True] * 5 + [False]

    @pytest.mark.asyncio
    async def test_exactly_one_token_is_enough(self, clock):
        """Test that tokens == 1.0 admits the request."""
        limiter = TokenBucket(RateLimitConfig(2, 2.0), clock=clock)
        await limiter.allow_request("u")
        await limiter.allow_request("u")
        assert await limiter.allow_request("u") is False

        clock.advance(1.0)  # exactly one token at 1 token/s

        assert await limiter.allow_request("u") is True
        assert await limiter.allow_request("u") is False

    @pytest.mark.asyncio
    async def test_denied_request_does_not_consume(self, clock):
        """Test that denials leave the bucket untouched apart from refill."""
        limiter = TokenBucket(RateLimitConfig(1, 1.0), clock=clock)
        await limiter.allow_request("u")
        for _ in range(10):
            assert await limiter.allow_request("u") is False

        clock.advance(1.0)
        assert await limiter.allow_request("u") is True

    @pytest.mark.asyncio
    async def test_different_keys_independent(self, limiter):
        """Test that different keys have independent limits."""
        for _ in range(5):
            await limiter.allow_request("user1")
        assert await limiter.allow_request("user1") is False

        assert await limiter.allow_request("user2") is True
