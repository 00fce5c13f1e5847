# booking_engine/services/availability/availability_service.py
"""
Slot listings for booking pages.

Generated slots come from the cache when one is configured. Booked time is
always subtracted from live appointment data afterwards.
"""
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from booking_engine.config.settings import Settings, get_settings
from booking_engine.core.exceptions import ValidationError
from booking_engine.repositories.appointment_repository import AppointmentRepository
from booking_engine.repositories.schedule_repository import ScheduleRepository
from booking_engine.repositories.service_repository import ServiceRepository
from booking_engine.services.availability.availability_cache import AvailabilityCache
from booking_engine.services.availability.slot_generator import (
    AvailabilitySlot,
    BusinessSchedule,
    ServiceTiming,
    generate_slots,
    group_slots_by_date,
)
from booking_engine.services.booking.occupancy import free_slots, intervals_from_appointments
from booking_engine.utils.time_utils import local_now, parse_date, parse_time

logger = logging.getLogger(__name__)

DEFAULT_SLOT_DURATION = 60  # Used when no service is given


class AvailabilityService:
    """Slot listings for a business, optionally per service"""

    def __init__(
            self,
            schedules: ScheduleRepository,
            services: ServiceRepository,
            appointments: AppointmentRepository,
            cache: Optional[AvailabilityCache] = None,
            settings: Optional[Settings] = None,
            clock: Callable[[Optional[str]], datetime] = local_now
    ):
        self.schedules = schedules
        self.services = services
        self.appointments = appointments
        self.cache = cache
        self.settings = settings or get_settings()
        self.clock = clock

    def business_now(self, business) -> datetime:
        return self.clock(business.timezone or self.settings.DEFAULT_TIMEZONE)

    async def load_schedule(self, business_id: str, start: date, end: date) -> BusinessSchedule:
        """Weekly hours plus the exceptions falling in ``[start, end]``"""
        weekly = await self.schedules.get_weekly_schedule(business_id)
        exceptions = await self.schedules.get_exceptions(business_id, start, end)
        return BusinessSchedule(weekly=weekly, exceptions=exceptions, business_id=business_id)

    async def resolve_timing(
            self,
            business_id: str,
            service_id: Optional[str],
            slot_duration: Optional[int] = None,
            buffer_time: Optional[int] = None
    ) -> ServiceTiming:
        """Service timing with per-request overrides applied"""
        if service_id:
            timing = await self.services.get_timing(business_id, service_id)
        else:
            timing = ServiceTiming(duration=DEFAULT_SLOT_DURATION, buffer_time=0)

        return ServiceTiming(
            duration=timing.duration if slot_duration is None else slot_duration,
            buffer_time=timing.buffer_time if buffer_time is None else buffer_time,
            service_id=timing.service_id,
        )

    async def _prepare(
            self,
            business_id: str,
            service_id: Optional[str],
            start_date,
            slot_duration: Optional[int],
            buffer_time: Optional[int],
            window_start: Optional[str],
            window_end: Optional[str]
    ) -> Tuple[date, ServiceTiming]:
        start = parse_date(start_date, field="start_date")
        _validate_overrides(slot_duration, buffer_time, window_start, window_end)

        await self.schedules.get_business(business_id)
        timing = await self.resolve_timing(business_id, service_id, slot_duration, buffer_time)
        return start, timing

    async def _generated_slots(
            self,
            business_id: str,
            service_id: Optional[str],
            start: date,
            days: int,
            timing: ServiceTiming,
            window_start: Optional[str],
            window_end: Optional[str]
    ) -> List[AvailabilitySlot]:
        if days <= 0:
            return []

        async def compute() -> List[AvailabilitySlot]:
            schedule = await self.load_schedule(business_id, start, start + timedelta(days=days - 1))
            return generate_slots(
                schedule,
                timing,
                start_date=start,
                days=days,
                window_start=window_start,
                window_end=window_end,
            )

        if self.cache is None:
            return await compute()

        return await self.cache.get_or_compute(
            compute,
            business_id=business_id,
            service_id=service_id,
            start_date=start,
            days=days,
            slot_duration=timing.duration,
            buffer_time=timing.buffer_time,
            window_start=window_start,
            window_end=window_end,
        )

    async def get_slot_sequence(
            self,
            business_id: str,
            service_id: Optional[str],
            start_date,
            days: int,
            slot_duration: Optional[int] = None,
            buffer_time: Optional[int] = None,
            window_start: Optional[str] = None,
            window_end: Optional[str] = None
    ) -> List[AvailabilitySlot]:
        """
        Generated slots for the range, before any booked time is removed.

        Served from the cache when one is configured; the result is the same
        either way.
        """
        start, timing = await self._prepare(
            business_id, service_id, start_date, slot_duration, buffer_time, window_start, window_end
        )
        return await self._generated_slots(
            business_id, service_id, start, days, timing, window_start, window_end
        )

    async def get_open_slots(
            self,
            business_id: str,
            service_id: Optional[str],
            start_date,
            days: int,
            slot_duration: Optional[int] = None,
            buffer_time: Optional[int] = None,
            window_start: Optional[str] = None,
            window_end: Optional[str] = None,
            exclude_booked: bool = True
    ) -> List[AvailabilitySlot]:
        """Generated slots minus those colliding with live appointments"""
        start, timing = await self._prepare(
            business_id, service_id, start_date, slot_duration, buffer_time, window_start, window_end
        )
        slots = await self._generated_slots(
            business_id, service_id, start, days, timing, window_start, window_end
        )
        if not exclude_booked or not slots:
            return slots

        booked = await self.appointments.list_appointments_between(
            business_id, start, start + timedelta(days=days - 1)
        )

        return free_slots(
            slots,
            intervals_from_appointments(booked, default_buffer=timing.buffer_time),
            buffer_time=timing.buffer_time,
        )

    async def get_available_slots(
            self,
            business_id: str,
            service_id: Optional[str] = None,
            start_date=None,
            days: Optional[int] = None,
            slot_duration: Optional[int] = None,
            buffer_time: Optional[int] = None,
            window_start: Optional[str] = None,
            window_end: Optional[str] = None,
            exclude_booked: bool = True
    ) -> Dict[str, Any]:
        """Per-date slot listing for booking pages"""
        days = self.settings.AVAILABILITY_DEFAULT_DAYS if days is None else days
        if days > self.settings.AVAILABILITY_MAX_DAYS:
            raise ValidationError(
                f"Days cannot exceed {self.settings.AVAILABILITY_MAX_DAYS}", field="days"
            )

        if start_date is None:
            business = await self.schedules.get_business(business_id)
            start = self.business_now(business).date()
        else:
            start = parse_date(start_date, field="start_date")

        slots = await self.get_open_slots(
            business_id, service_id, start, days,
            slot_duration, buffer_time, window_start, window_end, exclude_booked
        )

        logger.info(f"Computed {len(slots)} slots for business {business_id} from {start} over {days} days")

        return {
            "business_id": business_id,
            "service_id": service_id,
            "date_range": {"start_date": start.isoformat(), "days": max(days, 0)},
            "availability": group_slots_by_date(slots, start, days),
        }

    async def get_next_available_slot(
            self,
            business_id: str,
            service_id: str,
            start_date=None
    ) -> Optional[AvailabilitySlot]:
        """First free, not-yet-started slot within the search horizon"""
        business = await self.schedules.get_business(business_id)
        now = self.business_now(business)
        start = now.date() if start_date is None else parse_date(start_date, field="start_date")

        slots = await self.get_open_slots(
            business_id, service_id, start, self.settings.NEXT_SLOT_SEARCH_DAYS
        )

        for slot in slots:
            slot_start = datetime.combine(slot.date, datetime.min.time()) + timedelta(minutes=slot.start_time)
            if self.settings.ALLOW_PAST_BOOKINGS or slot_start > now:
                return slot

        return None


def _validate_overrides(
        slot_duration: Optional[int],
        buffer_time: Optional[int],
        window_start: Optional[str],
        window_end: Optional[str]
) -> None:
    """Reject malformed request options before touching any store"""
    if slot_duration is not None and slot_duration <= 0:
        raise ValidationError("Slot duration must be a positive number of minutes", field="slot_duration")
    if buffer_time is not None and buffer_time < 0:
        raise ValidationError("Buffer time cannot be negative", field="buffer_time")
    if window_start is not None:
        parse_time(window_start, field="window_start")
    if window_end is not None:
        parse_time(window_end, field="window_end")
