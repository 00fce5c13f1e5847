# booking_engine/services/booking/booking_conflict_service.py
"""
Booking request validation.

A requested slot is admitted only if it lies inside the effective hours of
its date, has not already started, and does not collide with any live
appointment (each one blocking ``[start, end + its buffer)``). Everything is
re-checked against live appointment data; the availability cache is never
consulted here.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from booking_engine.config.settings import Settings, get_settings
from booking_engine.repositories.appointment_repository import AppointmentRepository
from booking_engine.repositories.schedule_repository import ScheduleRepository
from booking_engine.repositories.service_repository import ServiceRepository
from booking_engine.services.availability.slot_generator import (
    AvailabilitySlot,
    BusinessSchedule,
    ServiceTiming,
    generate_slots,
)
from booking_engine.services.availability.weekly_schedule import TimeWindow
from booking_engine.services.booking.occupancy import (
    BookedInterval,
    find_conflicts,
    free_slots,
    intervals_from_appointments,
)
from booking_engine.utils.time_utils import add_minutes, local_now, minutes_between, parse_date, parse_time

logger = logging.getLogger(__name__)

CLOSED_MESSAGE = "Business is closed on this date"
PAST_MESSAGE = "Cannot book appointments in the past"


@dataclass
class ConflictCheckResult:
    """Outcome of a booking check. ``requested`` is the interval that was tested."""
    is_available: bool
    conflicts: List[str] = field(default_factory=list)
    suggestions: List[AvailabilitySlot] = field(default_factory=list)
    requested: Optional[AvailabilitySlot] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.is_available,
            "conflicts": list(self.conflicts),
            "suggestions": [slot.to_dict() for slot in self.suggestions],
        }


def hours_conflict(hours: Optional[TimeWindow], start: int, end: int) -> Optional[str]:
    """Reason the interval falls outside the open hours, or None if it fits"""
    if hours is None:
        return CLOSED_MESSAGE
    if not hours.contains(start, end):
        return f"Requested time is outside business hours ({hours})"
    return None


def describe_conflicts(conflicting: Iterable[BookedInterval]) -> List[str]:
    return [f"Overlaps existing appointment {interval.describe()}" for interval in conflicting]


def rank_suggestions(
        candidates: Iterable[AvailabilitySlot],
        requested_date: date,
        requested_start: int,
        limit: int
) -> List[AvailabilitySlot]:
    """
    Nearest candidates to the requested start, closest first.

    Equal distances favour the earlier slot.
    """
    def distance(slot: AvailabilitySlot):
        delta = minutes_between(requested_date, requested_start, slot.date, slot.start_time)
        return abs(delta), delta

    return sorted(candidates, key=distance)[:max(limit, 0)]


def slot_starts_at(slot_date: date, start_minutes: int) -> datetime:
    return datetime.combine(slot_date, datetime.min.time()) + timedelta(minutes=start_minutes)


class BookingConflictService:
    """Checks requested slots against hours and existing appointments"""

    def __init__(
            self,
            schedules: ScheduleRepository,
            services: ServiceRepository,
            appointments: AppointmentRepository,
            settings: Optional[Settings] = None,
            clock: Callable[[Optional[str]], datetime] = local_now
    ):
        self.schedules = schedules
        self.services = services
        self.appointments = appointments
        self.settings = settings or get_settings()
        self.clock = clock

    async def validate_booking_request(
            self,
            business_id: str,
            service_id: str,
            appointment_date,
            start_time: str,
            exclude_appointment_id: Optional[str] = None,
            include_suggestions: bool = True
    ) -> ConflictCheckResult:
        """
        Check one requested slot.

        Args:
            business_id: business to book with
            service_id: active service of that business
            appointment_date: ``YYYY-MM-DD`` (or a date)
            start_time: ``HH:MM``
            exclude_appointment_id: appointment to ignore, for rescheduling in place
            include_suggestions: attach nearby free slots when unavailable

        Returns:
            ConflictCheckResult; an unavailable slot is a normal result, not an error.

        Raises:
            ValidationError: malformed date or time, before any lookup
            NotFoundError: unknown business, or unknown/inactive service
        """
        requested_date = parse_date(appointment_date, field="appointment_date")
        requested_start = parse_time(start_time, field="start_time")

        business = await self.schedules.get_business(business_id)
        timing = await self.services.get_timing(business_id, service_id)
        requested_end = add_minutes(requested_start, timing.duration)
        requested = AvailabilitySlot(requested_date, requested_start, requested_end)

        conflicts: List[str] = []

        now = self.clock(business.timezone or self.settings.DEFAULT_TIMEZONE)
        if not self.settings.ALLOW_PAST_BOOKINGS and slot_starts_at(requested_date, requested_start) <= now:
            conflicts.append(PAST_MESSAGE)

        adjacent = max(self.settings.BOOKING_SUGGESTION_ADJACENT_DAYS, 0)
        first_day = requested_date - timedelta(days=adjacent)
        last_day = requested_date + timedelta(days=adjacent)

        weekly = await self.schedules.get_weekly_schedule(business_id)
        exceptions = await self.schedules.get_exceptions(business_id, first_day, last_day)
        schedule = BusinessSchedule(weekly=weekly, exceptions=exceptions, business_id=business_id)

        reason = hours_conflict(schedule.effective_hours_for(requested_date), requested_start, requested_end)
        if reason:
            conflicts.append(reason)

        booked = intervals_from_appointments(
            await self.appointments.list_appointments(
                business_id, requested_date, exclude_id=exclude_appointment_id
            ),
            default_buffer=timing.buffer_time,
        )
        # Requested interval is [start, end + buffer), not [start, end); see find_conflicts
        conflicts.extend(describe_conflicts(
            find_conflicts(booked, requested_start, requested_end, timing.buffer_time)
        ))

        if not conflicts:
            return ConflictCheckResult(is_available=True, requested=requested)

        logger.info(
            f"Slot {requested_date} {start_time} unavailable for business {business_id}, "
            f"service {service_id}: {'; '.join(conflicts)}"
        )

        suggestions: List[AvailabilitySlot] = []
        if include_suggestions:
            if adjacent:
                booked = intervals_from_appointments(
                    await self.appointments.list_appointments_between(
                        business_id, first_day, last_day, exclude_id=exclude_appointment_id
                    ),
                    default_buffer=timing.buffer_time,
                )
            suggestions = self.suggest_alternatives(
                schedule, timing, booked, requested_date, requested_start, first_day, now
            )

        return ConflictCheckResult(
            is_available=False,
            conflicts=conflicts,
            suggestions=suggestions,
            requested=requested,
        )

    def suggest_alternatives(
            self,
            schedule: BusinessSchedule,
            timing: ServiceTiming,
            booked: List[BookedInterval],
            requested_date: date,
            requested_start: int,
            first_day: date,
            now: datetime
    ) -> List[AvailabilitySlot]:
        """Free slots around the requested one, nearest first"""
        days = (requested_date - first_day).days * 2 + 1
        candidates = free_slots(
            generate_slots(schedule, timing, start_date=first_day, days=days),
            booked,
            buffer_time=timing.buffer_time,
        )

        if not self.settings.ALLOW_PAST_BOOKINGS:
            candidates = [
                slot for slot in candidates
                if slot_starts_at(slot.date, slot.start_time) > now
            ]

        return rank_suggestions(
            candidates, requested_date, requested_start, self.settings.BOOKING_MAX_SUGGESTIONS
        )

    async def is_time_slot_available(
            self,
            business_id: str,
            service_id: str,
            appointment_date,
            start_time: str,
            exclude_appointment_id: Optional[str] = None
    ) -> bool:
        result = await self.validate_booking_request(
            business_id, service_id, appointment_date, start_time,
            exclude_appointment_id=exclude_appointment_id,
            include_suggestions=False,
        )
        return result.is_available

    async def get_conflicts(
            self,
            business_id: str,
            service_id: str,
            appointment_date,
            start_time: str,
            exclude_appointment_id: Optional[str] = None
    ) -> List[str]:
        result = await self.validate_booking_request(
            business_id, service_id, appointment_date, start_time,
            exclude_appointment_id=exclude_appointment_id,
            include_suggestions=False,
        )
        return result.conflicts
