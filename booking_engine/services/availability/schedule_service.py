# booking_engine/services/availability/schedule_service.py
"""Schedule and service-timing changes, each followed by cache invalidation"""
import logging
from typing import List, Optional

from booking_engine.models.availability import AvailabilityException, WeeklyAvailability
from booking_engine.models.service import Service
from booking_engine.repositories.schedule_repository import ScheduleRepository
from booking_engine.repositories.service_repository import ServiceRepository
from booking_engine.services.availability.availability_cache import AvailabilityCache
from booking_engine.services.availability.exception_calendar import ExceptionDate
from booking_engine.services.availability.weekly_schedule import WeeklySchedule, WeeklyScheduleEntry

logger = logging.getLogger(__name__)


class ScheduleService:

    def __init__(
            self,
            schedules: ScheduleRepository,
            services: ServiceRepository,
            cache: Optional[AvailabilityCache] = None
    ):
        self.schedules = schedules
        self.services = services
        self.cache = cache

    async def get_weekly(self, business_id: str) -> WeeklySchedule:
        await self.schedules.get_business(business_id)
        return await self.schedules.get_weekly_schedule(business_id)

    async def update_weekly(
            self,
            business_id: str,
            entries: List[WeeklyScheduleEntry]
    ) -> List[WeeklyAvailability]:
        await self.schedules.get_business(business_id)
        rows = await self.schedules.upsert_weekly(business_id, entries)

        if self.cache:
            await self.cache.invalidate_business(business_id)
        return rows

    async def list_exceptions(self, business_id: str, start=None, end=None) -> List[AvailabilityException]:
        await self.schedules.get_business(business_id)
        return await self.schedules.list_exception_rows(business_id, start, end)

    async def add_exception(self, business_id: str, exception: ExceptionDate) -> AvailabilityException:
        await self.schedules.get_business(business_id)
        row = await self.schedules.add_exception(business_id, exception)

        if self.cache:
            await self.cache.invalidate_business(business_id)
        return row

    async def delete_exception(self, business_id: str, exception_id: str) -> None:
        await self.schedules.get_business(business_id)
        await self.schedules.delete_exception(business_id, exception_id)

        if self.cache:
            await self.cache.invalidate_business(business_id)

    async def update_service_timing(
            self,
            business_id: str,
            service_id: str,
            duration: Optional[int] = None,
            buffer_time: Optional[int] = None
    ) -> Service:
        await self.schedules.get_business(business_id)
        service = await self.services.update_timing(business_id, service_id, duration, buffer_time)
        logger.info(
            f"Service {service_id} timing set to {service.duration} min + {service.buffer_time} min buffer"
        )

        if self.cache:
            await self.cache.invalidate_service(business_id, service_id)
        return service
