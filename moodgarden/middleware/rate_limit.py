"""Redis-based sliding window rate limiting middleware."""

import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from moodgarden.logging_config import get_logger

logger = get_logger(__name__)

# Skip rate limiting for these paths
SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

DEFAULT_LIMIT = 60
DEFAULT_WINDOW = 60  # seconds


def client_identifier(request: Request) -> str:
    """Socket peer address.

    Forwarding headers are never read here; uvicorn rewrites the peer from
    X-Forwarded-For only for proxies listed in ``forwarded_allow_ips``.
    """
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis sliding window rate limiter (ZADD + ZREMRANGEBYSCORE).

    Fails open: when Redis is missing or erroring, requests pass through.
    """

    def __init__(self, app, redis_getter, limit: int = DEFAULT_LIMIT, window: int = DEFAULT_WINDOW):
        super().__init__(app)
        self._redis_getter = redis_getter
        self._limit = limit
        self._window = window

    async def _hit(self, key: str) -> int | None:
        """Record one request and return the count in the window, or None if Redis is down."""
        try:
            redis = self._redis_getter()
            now = time.time()
            pipe = redis.pipeline()
            pipe.zremrangebyscore(key, 0, now - self._window)
            pipe.zadd(key, {f"{now}": now})
            pipe.zcard(key)
            pipe.expire(key, self._window + 1)
            results = await pipe.execute()
        except (RedisError, RuntimeError, OSError) as e:
            logger.warning("rate_limit_redis_error", error=str(e))
            return None
        return results[2]

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        identifier = client_identifier(request)
        request_count = await self._hit(f"ratelimit:{identifier}:{request.url.path}")

        if request_count is None:
            return await call_next(request)

        if request_count > self._limit:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                path=request.url.path,
                count=request_count,
                limit=self._limit,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": f"Rate limit exceeded: {self._limit} requests per {self._window}s",
                },
                headers={"Retry-After": str(self._window)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self._limit - request_count))
        return response
