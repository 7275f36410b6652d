"""Redis connection used by the rate limiter.

Leaderboard reads never touch Redis, so a missing Redis only disables
rate limiting; it does not keep the service from starting.
"""

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from moodgarden.logging_config import get_logger

logger = get_logger(__name__)

_redis: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    """Get the shared Redis connection. Raises if init_redis() did not connect."""
    if _redis is None:
        raise RuntimeError("Redis not connected")
    return _redis


async def init_redis(url: str) -> aioredis.Redis | None:
    """Connect the shared Redis client, returning None when Redis is unreachable."""
    global _redis
    client = aioredis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("redis_unavailable", url=url, error=str(e))
        await client.aclose()
        return None
    _redis = client
    logger.info("redis_connected", url=url)
    return _redis


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
