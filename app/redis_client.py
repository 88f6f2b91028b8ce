"""Shared Redis connection. Only the distributed locks use it."""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Return the process-wide client, connecting lazily."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            health_check_interval=30,
        )
        logger.info(f"Redis client created for {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    return _redis_client


async def redis_available() -> bool:
    """Ping Redis for the health endpoint."""
    try:
        client = await get_redis()
        return bool(await client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    global _redis_client
    if _redis_client is None:
        return
    await _redis_client.aclose()
    _redis_client = None
