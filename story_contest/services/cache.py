"""
Cache Service Singleton - Story Contest Platform
story_contest/services/cache.py

Singleton Redis cache plus the competition snapshot helpers used by the
service facade. Every helper degrades to a no-op when Redis is unavailable;
the database stays the source of truth.
"""

from typing import Optional

import redis
import structlog

from story_contest.config import settings
from story_contest.models.competition import Competition, Period
from story_contest.services.redis_cache import RedisCache

logger = structlog.get_logger(__name__)

TTL_COMPETITION = settings.CACHE_TTL_COMPETITION

_cache: Optional[RedisCache] = None


def get_cache() -> Optional[RedisCache]:
    """
    Get or create the Redis cache instance.

    Returns None when Redis cannot be reached so callers fall through to
    the database.
    """
    global _cache
    if _cache is None:
        try:
            _cache = RedisCache()
            _cache.client.ping()
        except (redis.RedisError, ConnectionError) as e:
            logger.warning("cache_unavailable", error=str(e))
            _cache = None
    return _cache


def reset_cache() -> None:
    """Forget the singleton so the next get_cache() reconnects."""
    global _cache
    _cache = None


def competition_key(competition_id: str) -> str:
    return f"competition:{competition_id}"


def current_competition_key(period: Period) -> str:
    return f"competition:period:{period.key}"


def get_cached_competition(key: str) -> Optional[Competition]:
    cache = get_cache()
    if cache is None:
        return None
    try:
        return cache.get(key, Competition)
    except redis.RedisError as e:
        logger.warning("cache_read_failed", key=key, error=str(e))
        return None


def cache_competition(competition: Competition, *keys: str) -> None:
    cache = get_cache()
    if cache is None:
        return
    try:
        for key in keys or (competition_key(competition.id),):
            cache.set(key, competition, TTL_COMPETITION)
    except redis.RedisError as e:
        logger.warning("cache_write_failed", competition_id=competition.id, error=str(e))


def invalidate_competition(competition: Competition) -> None:
    """Drop both the by-id and the by-period snapshot of a competition."""
    cache = get_cache()
    if cache is None:
        return
    try:
        cache.delete(competition_key(competition.id))
        cache.delete(current_competition_key(competition.period))
    except redis.RedisError as e:
        logger.warning("cache_invalidate_failed", competition_id=competition.id, error=str(e))


def invalidate_all_competitions() -> None:
    cache = get_cache()
    if cache is None:
        return
    try:
        removed = cache.delete_pattern("competition:*")
        logger.debug("cache_competitions_cleared", removed=removed)
    except redis.RedisError as e:
        logger.warning("cache_invalidate_failed", error=str(e))
