"""Rate limiting middleware.

Adapts any ``RateLimiter`` to an ASGI application: one admission check per
request, keyed by API key if present, otherwise by client IP.
"""

import hashlib
import math
from typing import Callable, Optional

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ratelimiter.app.core.logging import get_logger
from ratelimiter.app.exceptions import RateLimitExceededError
from ratelimiter.app.limiters import RateLimiter, create_limiter_from_settings

logger = get_logger(__name__)

MAX_API_KEY_LENGTH = 512


def get_client_key(request: Request) -> str:
    """Get rate limit key for the request.

    Uses API key if available, otherwise falls back to IP address.
    Both are hashed with SHA-256 so raw credentials and addresses are never
    stored or logged.

    Raises:
        HTTPException: 400 if the API key is unreasonably long
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        api_key = auth[7:].strip()
        if len(api_key) > MAX_API_KEY_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"API key too long (max {MAX_API_KEY_LENGTH} characters)",
            )
        # 32 hex chars (128 bits) for collision resistance
        key_hash = hashlib.sha256(api_key.encode()).hexdigest()[:32]
        return f"apikey:{key_hash}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:32]
    return f"ip:{ip_hash}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce rate limits on requests.

    Uses ``check_with_fallback`` so an unavailable shared backend degrades
    to the limiter's fallback policy instead of failing the request.
    """

    def __init__(
        self,
        app,
        limiter: Optional[RateLimiter] = None,
        key_func: Callable[[Request], str] = get_client_key,
    ):
        super().__init__(app)
        self.limiter = limiter if limiter is not None else create_limiter_from_settings()
        self.key_func = key_func

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        try:
            key = self.key_func(request)
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        limit = self.limiter.config.capacity
        allowed = await self.limiter.check_with_fallback(key)

        if not allowed:
            error = RateLimitExceededError(
                limit=limit,
                retry_after=max(1, math.ceil(self.limiter.config.window_seconds / limit)),
            )
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_response(),
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "Retry-After": str(error.retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
