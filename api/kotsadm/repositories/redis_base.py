"""Base repository with common Redis patterns."""

import json
from typing import Any, Dict, List, Optional

from redis import Redis, RedisError

from kotsadm.core.logging import get_logger

logger = get_logger(__name__)


class StoreError(Exception):
    """A store lookup failed."""


class NotFoundError(StoreError):
    """The requested record does not exist."""


class RedisRepository:
    """Base repository with common Redis operations.

    Reads feed authorization decisions, so failures are raised rather than
    turned into empty results.
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Get and parse JSON from Redis key. Returns None if the key is missing."""
        try:
            data = self.redis.get(key)
        except RedisError as e:
            logger.error(f"Error reading {key}: {e}")
            raise StoreError(f"failed to read {key}") from e

        if not data:
            return None

        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {key}: {e}")
            raise StoreError(f"failed to decode {key}") from e

    def get_string(self, key: str) -> Optional[str]:
        """Get a plain string value."""
        try:
            return self.redis.get(key)
        except RedisError as e:
            logger.error(f"Error reading {key}: {e}")
            raise StoreError(f"failed to read {key}") from e

    def get_members(self, key: str) -> List[str]:
        """Get sorted members of a set."""
        try:
            return sorted(self.redis.smembers(key))
        except RedisError as e:
            logger.error(f"Error reading set {key}: {e}")
            raise StoreError(f"failed to read {key}") from e

    def batch_get_json(self, keys: List[str]) -> Dict[str, Optional[Dict]]:
        """Batch get multiple JSON keys using pipeline."""
        if not keys:
            return {}

        try:
            pipeline = self.redis.pipeline()
            for key in keys:
                pipeline.get(key)
            results = pipeline.execute()
        except RedisError as e:
            logger.error(f"Error batch reading {len(keys)} keys: {e}")
            raise StoreError("failed to batch read keys") from e

        output = {}
        for key, result in zip(keys, results):
            try:
                output[key] = json.loads(result) if result else None
            except json.JSONDecodeError as e:
                raise StoreError(f"failed to decode {key}") from e

        return output
