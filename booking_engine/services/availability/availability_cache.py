# booking_engine/services/availability/availability_cache.py
"""
Redis cache for generated slot sequences.

Entries are keyed by (business, service, start date, days, duration, buffer,
display window) plus the business and service generation counters current at
write time. Invalidating a business or a service bumps its counter, which
orphans every older entry at once without enumerating keys; orphans expire
with their TTL. Generations are read before the schedule is loaded, so a
computation racing an invalidation writes under the old generation and is
never read back.

Nothing here decides whether a booking is admitted. Every Redis failure is
logged and treated as a miss.
"""
import json
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional

from redis.exceptions import RedisError

from booking_engine.config.redis import RedisKeys
from booking_engine.services.availability.slot_generator import AvailabilitySlot

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class AvailabilityCache:
    """Slot cache with tag invalidation by business and by service"""

    def __init__(self, redis_client, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self._hits = 0
        self._misses = 0
        self._invalidations = 0
        self._errors = 0

    async def _generation(self, key: str) -> int:
        value = await self.redis.get(key)
        return int(value) if value is not None else 0

    async def build_key(
            self,
            business_id: str,
            service_id: Optional[str],
            start_date: date,
            days: int,
            slot_duration: int,
            buffer_time: int,
            window_start: Optional[str] = None,
            window_end: Optional[str] = None
    ) -> str:
        business_gen = await self._generation(
            RedisKeys.BUSINESS_GENERATION.format(business_id=business_id)
        )
        service_gen = 0
        if service_id:
            service_gen = await self._generation(
                RedisKeys.SERVICE_GENERATION.format(service_id=service_id)
            )

        return RedisKeys.AVAILABILITY_SLOTS.format(
            business_id=business_id,
            service_id=service_id or "all",
            start_date=start_date.isoformat(),
            days=days,
            slot_duration=slot_duration,
            buffer_time=buffer_time,
            window=f"{window_start or ''}-{window_end or ''}",
            business_gen=business_gen,
            service_gen=service_gen,
        )

    async def get_or_compute(
            self,
            compute: Callable[[], Awaitable[List[AvailabilitySlot]]],
            business_id: str,
            service_id: Optional[str],
            start_date: date,
            days: int,
            slot_duration: int,
            buffer_time: int,
            window_start: Optional[str] = None,
            window_end: Optional[str] = None
    ) -> List[AvailabilitySlot]:
        """
        Return cached slots for the key, computing and storing them on a miss.

        ``compute`` must load its schedule data itself. It is awaited only
        after the generation counters have been read into the key.
        """
        try:
            key = await self.build_key(
                business_id, service_id, start_date, days,
                slot_duration, buffer_time, window_start, window_end
            )
            cached = await self.redis.get(key)
        except RedisError as e:
            self._errors += 1
            logger.warning(f"Availability cache unavailable, computing directly: {e}")
            return await compute()

        if cached is not None:
            self._hits += 1
            logger.debug(f"Cache HIT: {key}")
            return [AvailabilitySlot.from_dict(item) for item in json.loads(cached)]

        self._misses += 1
        logger.debug(f"Cache MISS: {key}")
        slots = await compute()

        try:
            payload = json.dumps([slot.to_dict() for slot in slots])
            await self.redis.setex(key, self.ttl_seconds, payload)
        except RedisError as e:
            self._errors += 1
            logger.warning(f"Availability cache write failed for {key}: {e}")

        return slots

    async def invalidate_business(self, business_id: str) -> None:
        """Drop every cached slot sequence of the business"""
        try:
            await self.redis.incr(RedisKeys.BUSINESS_GENERATION.format(business_id=business_id))
            self._invalidations += 1
            logger.info(f"Availability cache invalidated for business {business_id}")
        except RedisError as e:
            # Stale entries age out within the TTL
            self._errors += 1
            logger.error(f"Failed to invalidate availability cache for business {business_id}: {e}")

    async def invalidate_service(self, business_id: str, service_id: str) -> None:
        """Drop cached sequences of one service, and the business-wide ones"""
        try:
            await self.redis.incr(RedisKeys.SERVICE_GENERATION.format(service_id=service_id))
            self._invalidations += 1
            logger.info(f"Availability cache invalidated for service {service_id}")
        except RedisError as e:
            self._errors += 1
            logger.error(f"Failed to invalidate availability cache for service {service_id}: {e}")

        await self.invalidate_business(business_id)

    def stats(self) -> Dict[str, float]:
        """In-process cache statistics (for monitoring)"""
        lookups = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "invalidations": self._invalidations,
            "errors": self._errors,
            "hit_rate": (self._hits / lookups * 100) if lookups else 0.0,
        }
