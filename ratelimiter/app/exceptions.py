"""Custom exceptions for the rate limiter."""

from typing import Optional


class RateLimiterError(Exception):
    """Base class for rate limiter exceptions with HTTP status code.
    
    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500
    
    def __init__(self, message: str = "Rate limiter error"):
        self.message = message
        super().__init__(message)


class ConfigurationError(RateLimiterError, ValueError):
    """Raised when a limiter is constructed with invalid parameters.
    
    Configuration is validated at construction time only; a limiter that
    was built successfully never raises this from a check.
    """
    status_code = 500
    
    def __init__(self, detail: str = "Invalid rate limiter configuration"):
        self.detail = detail
        super().__init__(detail)


class BackendUnavailable(RateLimiterError):
    """Raised when the shared state store cannot be reached in time.
    
    Maps to HTTP 503 Service Unavailable.
    """
    status_code = 503
    
    def __init__(self, reason: str = "unavailable", detail: Optional[str] = None):
        self.reason = reason
        message = detail or f"Rate limit backend unavailable ({reason})"
        super().__init__(message)


class RateLimitExceededError(RateLimiterError):
    """Raised (or rendered) when a request is denied admission.
    
    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    
    def __init__(
        self,
        limit: int,
        retry_after: int,
        detail: Optional[str] = None
    ):
        self.limit = limit
        self.retry_after = retry_after
        message = detail or "Rate limit exceeded. Please try again later."
        super().__init__(message)
    
    def to_response(self) -> dict:
        """Convert to API response body."""
        return {
            "error": "rate_limit_exceeded",
            "message": self.message,
            "limit": self.limit,
            "retry_after": self.retry_after,
        }
