"""
Redis Cache - Story Contest Platform
story_contest/services/redis_cache.py

Thin typed wrapper over redis-py storing pydantic models as JSON.
"""

import redis
from typing import Optional, TypeVar, Type
from pydantic import BaseModel
from story_contest.config import settings

T = TypeVar("T", bound=BaseModel)


class RedisCache:
    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        data = self.client.get(key)
        if data:
            return model.model_validate_json(data)
        return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Cache Pydantic model with TTL."""
        self.client.setex(key, ttl_seconds, value.model_dump_json())

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def delete_pattern(self, pattern: str) -> int:
        """Invalidate all keys matching pattern; returns how many were removed."""
        removed = 0
        for key in self.client.scan_iter(match=pattern):
            removed += self.client.delete(key)
        return removed
