# booking_engine/repositories/appointment_repository.py
"""Appointment persistence. Conflict checks happen in the booking services, never here."""
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from booking_engine.core.exceptions import NotFoundError
from booking_engine.models.appointment import Appointment, AppointmentStatus, OCCUPYING_STATUSES
from booking_engine.models.business import Business


class AppointmentRepository:

    def __init__(self, db: Session):
        self.db = db

    async def list_appointments(
            self,
            business_id: str,
            on: date,
            exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        """Calendar-occupying appointments of one date, with their services loaded"""
        return await self.list_appointments_between(business_id, on, on, exclude_id)

    async def list_appointments_between(
            self,
            business_id: str,
            start: date,
            end: date,
            exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        query = self.db.query(Appointment).options(joinedload(Appointment.service)).filter(
            Appointment.business_id == business_id,
            Appointment.appointment_date >= start,
            Appointment.appointment_date <= end,
            Appointment.status.in_(OCCUPYING_STATUSES)
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)

        return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    async def get(self, business_id: str, appointment_id: str) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()

        if not appointment:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    async def lock_business(self, business_id: str) -> Optional[Business]:
        """
        Take a row lock on the business for the rest of the transaction.

        Serializes "check availability, then insert" across concurrent
        bookings of the same business. Backends without row locks (SQLite)
        ignore FOR UPDATE.
        """
        return self.db.query(Business).filter(Business.id == business_id).with_for_update().first()

    async def create(
            self,
            business_id: str,
            service_id: str,
            appointment_date: date,
            start_time: str,
            end_time: str,
            customer_name: Optional[str] = None,
            customer_email: Optional[str] = None,
            customer_phone: Optional[str] = None,
            notes: Optional[str] = None
    ) -> Appointment:
        appointment = Appointment(
            business_id=business_id,
            service_id=service_id,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            notes=notes,
            status=AppointmentStatus.PENDING.value,
        )

        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    async def set_status(
            self,
            appointment: Appointment,
            status: AppointmentStatus,
            reason: Optional[str] = None
    ) -> Appointment:
        appointment.status = status.value
        if status == AppointmentStatus.CANCELLED:
            appointment.cancelled_at = datetime.now(timezone.utc)
            appointment.cancellation_reason = reason

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    async def reschedule(
            self,
            appointment: Appointment,
            appointment_date: date,
            start_time: str,
            end_time: str
    ) -> Appointment:
        """Move the appointment, keeping its identity"""
        appointment.appointment_date = appointment_date
        appointment.start_time = start_time
        appointment.end_time = end_time

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def rollback(self) -> None:
        """Release the business lock without writing"""
        self.db.rollback()
