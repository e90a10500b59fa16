"""Database connections."""

from .redis import close_redis_connection, get_redis_client, get_redis_pool

__all__ = ["get_redis_client", "get_redis_pool", "close_redis_connection"]
