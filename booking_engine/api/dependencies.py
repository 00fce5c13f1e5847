# ============================================================================
# FILE: booking_engine/api/dependencies.py
# Request-scoped repositories and services
# ============================================================================
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from booking_engine.config.database import get_db
from booking_engine.config.settings import Settings, get_settings
from booking_engine.repositories.appointment_repository import AppointmentRepository
from booking_engine.repositories.schedule_repository import ScheduleRepository
from booking_engine.repositories.service_repository import ServiceRepository
from booking_engine.services.availability.availability_cache import AvailabilityCache
from booking_engine.services.availability.availability_service import AvailabilityService
from booking_engine.services.availability.schedule_service import ScheduleService
from booking_engine.services.booking.appointment_service import AppointmentService
from booking_engine.services.booking.booking_conflict_service import BookingConflictService


def get_availability_cache(request: Request) -> Optional[AvailabilityCache]:
    """Process-wide cache built at startup; None when caching is disabled"""
    return getattr(request.app.state, "availability_cache", None)


def get_schedule_repository(db: Session = Depends(get_db)) -> ScheduleRepository:
    return ScheduleRepository(db)


def get_service_repository(db: Session = Depends(get_db)) -> ServiceRepository:
    return ServiceRepository(db)


def get_appointment_repository(db: Session = Depends(get_db)) -> AppointmentRepository:
    return AppointmentRepository(db)


def get_availability_service(
        schedules: ScheduleRepository = Depends(get_schedule_repository),
        services: ServiceRepository = Depends(get_service_repository),
        appointments: AppointmentRepository = Depends(get_appointment_repository),
        cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
        settings: Settings = Depends(get_settings)
) -> AvailabilityService:
    return AvailabilityService(schedules, services, appointments, cache=cache, settings=settings)


def get_booking_conflict_service(
        schedules: ScheduleRepository = Depends(get_schedule_repository),
        services: ServiceRepository = Depends(get_service_repository),
        appointments: AppointmentRepository = Depends(get_appointment_repository),
        settings: Settings = Depends(get_settings)
) -> BookingConflictService:
    return BookingConflictService(schedules, services, appointments, settings=settings)


def get_schedule_service(
        schedules: ScheduleRepository = Depends(get_schedule_repository),
        services: ServiceRepository = Depends(get_service_repository),
        cache: Optional[AvailabilityCache] = Depends(get_availability_cache)
) -> ScheduleService:
    return ScheduleService(schedules, services, cache=cache)


def get_appointment_service(
        appointments: AppointmentRepository = Depends(get_appointment_repository),
        conflicts: BookingConflictService = Depends(get_booking_conflict_service),
        cache: Optional[AvailabilityCache] = Depends(get_availability_cache)
) -> AppointmentService:
    return AppointmentService(appointments, conflicts, cache=cache)
