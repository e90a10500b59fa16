"""Redis connection management."""

from functools import lru_cache

import redis

from kotsadm.config.settings import settings
from kotsadm.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_redis_pool() -> redis.ConnectionPool:
    """Get or create Redis connection pool."""
    return redis.ConnectionPool.from_url(
        settings.redis_url,
        decode_responses=True,
        max_connections=50,
    )


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Get Redis client with shared connection pool."""
    client = redis.Redis(connection_pool=get_redis_pool())

    try:
        client.ping()
        logger.info("Redis connection established")
    except redis.RedisError as e:
        logger.error(f"Redis connection failed: {e}")
        raise

    return client


def close_redis_connection():
    """Close Redis connection pool."""
    if get_redis_pool.cache_info().currsize == 0:
        return

    try:
        get_redis_pool().disconnect()
        logger.info("Redis connection pool closed")
    except redis.RedisError as e:
        logger.error(f"Error closing Redis pool: {e}")
    finally:
        get_redis_pool.cache_clear()
        get_redis_client.cache_clear()
