"""Login throttling using Redis.

Only the login endpoints are limited, keyed by client IP, with a sliding
window kept in a Redis sorted set. If Redis is unreachable the request
is allowed (fail open).
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.middleware.exceptions import create_error_response
from app.utils.redis_client import get_redis

logger = logging.getLogger(__name__)

LIMITED_PATHS = ("/api/auth/login", "/api/auth/admin-login")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding-window limit on login attempts."""

    def __init__(
        self,
        app,
        limit: int | None = None,
        window: int | None = None,
        paths: tuple[str, ...] = LIMITED_PATHS,
    ):
        super().__init__(app)
        self.limit = limit
        self.window = window
        self.paths = paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if (
            not settings.rate_limit_enabled
            or request.method != "POST"
            or request.url.path.rstrip("/") not in self.paths
        ):
            return await call_next(request)

        limit = self.limit or settings.login_rate_limit
        window = self.window or settings.login_rate_window
        key = f"ratelimit:login:{self._client_ip(request)}"

        allowed, remaining, reset_time = await check_rate_limit(key, limit, window)
        if not allowed:
            retry_after = max(1, int(reset_time - time.time()))
            return create_error_response(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                error_code="RATE_LIMITED",
                message=f"Too many login attempts. Try again in {retry_after} seconds.",
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

    @staticmethod
    def _client_ip(request: Request) -> str:
        # X-Forwarded-For first (load balancer)
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


async def check_rate_limit(
    key: str, limit: int, window: int
) -> tuple[bool, int, float]:
    """Sliding-window check.

    Returns:
        (allowed, remaining, reset_time)
    """
    current_time = time.time()
    window_start = current_time - window

    try:
        redis_client = await get_redis()
        await redis_client.zremrangebyscore(key, 0, window_start)
        count = await redis_client.zcard(key)

        if count >= limit:
            oldest = await redis_client.zrange(key, 0, 0, withscores=True)
            reset_time = oldest[0][1] + window if oldest else current_time + window
            return False, 0, reset_time

        await redis_client.zadd(key, {str(current_time): current_time})
        await redis_client.expire(key, window)
        return True, limit - count - 1, current_time + window
    except Exception as e:
        logger.error(f"Rate limit check failed: {e}")
        return True, limit, current_time + window
