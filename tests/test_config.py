"""Tests for limiter configuration and settings."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from ratelimiter.app.core.config import Settings
from ratelimiter.app.exceptions import ConfigurationError
from ratelimiter.app.limiters import RateLimitConfig


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_per_second(self):
        config = RateLimitConfig.per_second(5)
        assert config.capacity == 5
        assert config.window == 1.0
        assert config.rate == 5.0

    def test_per_minute(self):
        config = RateLimitConfig.per_minute(120)
        assert config == RateLimitConfig(120, 60.0)
        assert config.rate == 2.0

    def test_accepts_timedelta(self):
        config = RateLimitConfig(3, timedelta(milliseconds=500))
        assert config.window == 0.5
        assert config.window_seconds == 0.5

    def test_ttl_is_twice_window(self):
        assert RateLimitConfig.per_minute(10).ttl_seconds == 120
        assert RateLimitConfig(10, 2.5).ttl_seconds == 5

    def test_ttl_never_below_one_second(self):
        assert RateLimitConfig(10, 0.1).ttl_seconds == 1

    def test_is_immutable(self):
        config = RateLimitConfig.per_second(5)
        with pytest.raises(AttributeError):
            config.capacity = 10

    @pytest.mark.parametrize(
        "capacity, window",
        [
            (0, 1.0),
            (-1, 1.0),
            (5, 0),
            (5, -1.0),
            (5, timedelta(0)),
            (5, float("nan")),
            (2.5, 1.0),
            (True, 1.0),
            (5, "1s"),
        ],
    )
    def test_rejects_invalid_parameters(self, capacity, window):
        with pytest.raises(ConfigurationError):
            RateLimitConfig(capacity, window)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            RateLimitConfig(5, 0)

    def test_from_settings(self):
        settings = Settings(rate_limit_capacity=7, rate_limit_window_seconds=3.0)
        assert RateLimitConfig.from_settings(settings) == RateLimitConfig(7, 3.0)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.rate_limit_algorithm == "token_bucket"
        assert settings.rate_limit_fail_closed is False
        assert settings.redis_enabled is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_CAPACITY", "25")
        monkeypatch.setenv("RATE_LIMIT_ALGORITHM", "Sliding_Window")
        monkeypatch.setenv("REDIS_ENABLED", "true")

        settings = Settings(_env_file=None)

        assert settings.rate_limit_capacity == 25
        assert settings.rate_limit_algorithm == "sliding_window"
        assert settings.redis_enabled is True

    @pytest.mark.parametrize(
        "field, value",
        [
            ("rate_limit_capacity", 0),
            ("rate_limit_window_seconds", 0),
            ("redis_timeout_seconds", -1),
            ("rate_limit_max_entries", -5),
            ("rate_limit_algorithm", "gcra"),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})
