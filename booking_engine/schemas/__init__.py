# booking_engine/schemas/__init__.py
from .availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    AvailabilityExceptionCreateRequest,
    AvailabilityExceptionResponse,
    AvailabilityResponse,
    AvailabilitySlotResponse,
    NextAvailableSlotResponse,
    ServiceTimingResponse,
    ServiceTimingUpdateRequest,
    WeeklyScheduleEntrySchema,
    WeeklyScheduleResponse,
    WeeklyScheduleUpdateRequest,
)

from .booking import (
    AppointmentResponse,
    BookingCancelRequest,
    BookingCreateRequest,
    BookingRescheduleRequest,
)
