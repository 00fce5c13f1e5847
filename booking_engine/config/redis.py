# booking_engine/config/redis.py
"""Redis configuration and connection setup"""
import redis.asyncio as redis
from typing import Optional

from booking_engine.config.settings import get_settings

settings = get_settings()

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Get or create Redis connection pool"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """Get Redis client from pool"""
    pool = get_redis_pool()
    return redis.Redis(connection_pool=pool)


async def close_redis_pool() -> None:
    """Disconnect the shared pool on shutdown"""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None


class RedisKeys:
    """Redis key patterns for consistent naming"""

    # Cached slot sequences, keyed by the generations in force when written
    AVAILABILITY_SLOTS = (
        "availability:{business_id}:{service_id}:{start_date}:{days}:"
        "{slot_duration}:{buffer_time}:{window}:g{business_gen}.{service_gen}"
    )

    # Tag generations, bumped on invalidation
    BUSINESS_GENERATION = "availability:gen:business:{business_id}"
    SERVICE_GENERATION = "availability:gen:service:{service_id}"
