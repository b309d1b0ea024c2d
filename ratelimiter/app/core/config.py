from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ALGORITHM_NAMES = ("token_bucket", "leaky_bucket", "fixed_window", "sliding_window")


class Settings(BaseSettings):
    """Rate limiter settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Rate limiting settings
    rate_limit_algorithm: str = "token_bucket"
    rate_limit_capacity: int = 60  # Requests admitted per window
    rate_limit_window_seconds: float = 60.0
    rate_limit_max_entries: int = 10000  # Local keys kept before LRU eviction (0 = unbounded)
    rate_limit_key_prefix: str = "rate_limit"
    rate_limit_fail_closed: bool = (
        False  # If True, deny requests when Redis is unavailable
    )

    # Redis settings (optional)
    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    redis_timeout_seconds: float = 0.5  # Bound on every atomic check

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("rate_limit_algorithm", mode="before")
    @classmethod
    def normalize_algorithm(cls, v: str) -> str:
        """Validate the algorithm name against the supported set."""
        name = str(v).strip().lower()
        if name not in ALGORITHM_NAMES:
            raise ValueError(
                f"rate_limit_algorithm must be one of {', '.join(ALGORITHM_NAMES)}"
            )
        return name

    @field_validator("rate_limit_capacity")
    @classmethod
    def validate_capacity_positive(cls, v: int) -> int:
        """Validate capacity is positive."""
        if v < 1:
            raise ValueError("rate_limit_capacity must be at least 1")
        return v

    @field_validator("rate_limit_window_seconds", "redis_timeout_seconds")
    @classmethod
    def validate_seconds_positive(cls, v: float) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("Duration values must be positive")
        return v

    @field_validator("rate_limit_max_entries")
    @classmethod
    def validate_max_entries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("rate_limit_max_entries must not be negative")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
