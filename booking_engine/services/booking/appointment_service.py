# ============================================================================
# booking_engine/services/booking/appointment_service.py
# ============================================================================
"""Service for managing appointments"""
import logging
from typing import Dict, Optional, Set, Tuple

from booking_engine.core.exceptions import ConflictError, ValidationError
from booking_engine.models.appointment import Appointment, AppointmentStatus
from booking_engine.repositories.appointment_repository import AppointmentRepository
from booking_engine.services.availability.availability_cache import AvailabilityCache
from booking_engine.services.booking.booking_conflict_service import BookingConflictService

logger = logging.getLogger(__name__)

# action -> (allowed current statuses, resulting status)
TRANSITIONS: Dict[str, Tuple[Set[AppointmentStatus], AppointmentStatus]] = {
    "confirm": ({AppointmentStatus.PENDING}, AppointmentStatus.CONFIRMED),
    "complete": ({AppointmentStatus.CONFIRMED}, AppointmentStatus.COMPLETED),
    "cancel": ({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}, AppointmentStatus.CANCELLED),
}

RESCHEDULABLE = {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}


class AppointmentService:
    """Handles appointment operations"""

    def __init__(
            self,
            appointments: AppointmentRepository,
            conflicts: BookingConflictService,
            cache: Optional[AvailabilityCache] = None
    ):
        self.appointments = appointments
        self.conflicts = conflicts
        self.cache = cache

    async def _check_locked(
            self,
            business_id: str,
            service_id: str,
            appointment_date,
            start_time: str,
            exclude_appointment_id: Optional[str] = None
    ):
        """
        Lock the business and validate the slot.

        The lock stays held until the caller commits or the slot is rejected.
        """
        await self.appointments.lock_business(business_id)
        try:
            result = await self.conflicts.validate_booking_request(
                business_id, service_id, appointment_date, start_time,
                exclude_appointment_id=exclude_appointment_id,
            )
        except Exception:
            self.appointments.rollback()
            raise

        if not result.is_available:
            self.appointments.rollback()
            raise ConflictError(result.conflicts, result.suggestions)

        return result.requested

    async def _invalidate(self, business_id: str) -> None:
        if self.cache:
            await self.cache.invalidate_business(business_id)

    async def create_appointment(
            self,
            business_id: str,
            service_id: str,
            appointment_date,
            start_time: str,
            customer_name: Optional[str] = None,
            customer_email: Optional[str] = None,
            customer_phone: Optional[str] = None,
            notes: Optional[str] = None
    ) -> Appointment:
        """Create a pending appointment, or raise ConflictError with alternatives"""
        slot = await self._check_locked(business_id, service_id, appointment_date, start_time)

        appointment = await self.appointments.create(
            business_id=business_id,
            service_id=service_id,
            appointment_date=slot.date,
            start_time=slot.start,
            end_time=slot.end,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            notes=notes,
        )
        logger.info(f"Appointment {appointment.id} booked for {slot.date} {slot.start}-{slot.end}")

        await self._invalidate(business_id)
        return appointment

    async def get_appointment(self, business_id: str, appointment_id: str) -> Appointment:
        return await self.appointments.get(business_id, appointment_id)

    async def reschedule_appointment(
            self,
            business_id: str,
            appointment_id: str,
            appointment_date,
            start_time: str
    ) -> Appointment:
        """Move an appointment; its own current slot does not count as a conflict"""
        appointment = await self.appointments.get(business_id, appointment_id)
        if AppointmentStatus(appointment.status) not in RESCHEDULABLE:
            raise ValidationError(
                f"Cannot reschedule a {appointment.status} appointment", field="status"
            )

        slot = await self._check_locked(
            business_id, appointment.service_id, appointment_date, start_time,
            exclude_appointment_id=appointment.id,
        )

        appointment = await self.appointments.reschedule(appointment, slot.date, slot.start, slot.end)
        logger.info(f"Appointment {appointment.id} moved to {slot.date} {slot.start}-{slot.end}")

        await self._invalidate(business_id)
        return appointment

    async def _transition(
            self,
            business_id: str,
            appointment_id: str,
            action: str,
            reason: Optional[str] = None
    ) -> Appointment:
        allowed, target = TRANSITIONS[action]
        appointment = await self.appointments.get(business_id, appointment_id)

        current = AppointmentStatus(appointment.status)
        if current not in allowed:
            raise ValidationError(
                f"Cannot {action} an appointment that is {current.value}", field="status"
            )

        appointment = await self.appointments.set_status(appointment, target, reason)
        logger.info(f"Appointment {appointment_id}: {current.value} -> {target.value}")
        return appointment

    async def confirm_appointment(self, business_id: str, appointment_id: str) -> Appointment:
        return await self._transition(business_id, appointment_id, "confirm")

    async def complete_appointment(self, business_id: str, appointment_id: str) -> Appointment:
        return await self._transition(business_id, appointment_id, "complete")

    async def cancel_appointment(
            self,
            business_id: str,
            appointment_id: str,
            reason: Optional[str] = None
    ) -> Appointment:
        appointment = await self._transition(business_id, appointment_id, "cancel", reason)
        await self._invalidate(business_id)
        return appointment
