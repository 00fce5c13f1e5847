# booking_engine/models/__init__.py
from .base import Base
from .business import Business
from .service import Service
from .availability import WeeklyAvailability, AvailabilityException
from .appointment import Appointment, AppointmentStatus, OCCUPYING_STATUSES

__all__ = [
    "Base",
    "Business",
    "Service",
    "WeeklyAvailability",
    "AvailabilityException",
    "Appointment",
    "AppointmentStatus",
    "OCCUPYING_STATUSES",
]
