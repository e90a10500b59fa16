"""Repositories package for data access layer."""

from .redis_base import NotFoundError, RedisRepository, StoreError
from .store import KotsStore, Store

__all__ = [
    "KotsStore",
    "Store",
    "RedisRepository",
    "StoreError",
    "NotFoundError",
]
