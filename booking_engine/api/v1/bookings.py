# ============================================================================
# FILE: booking_engine/api/v1/bookings.py
# Appointment booking and status changes - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, status

from booking_engine.api.dependencies import get_appointment_service
from booking_engine.schemas.booking import (
    AppointmentResponse,
    BookingCancelRequest,
    BookingCreateRequest,
    BookingRescheduleRequest,
)
from booking_engine.services.booking.appointment_service import AppointmentService

router = APIRouter(prefix="/businesses/{business_id}/bookings", tags=["bookings"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
        request: BookingCreateRequest,
        business_id: str = Path(..., description="The business ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    """
    Book a slot.
    Answers 409 with conflicts and suggested alternatives when the slot is taken.
    """
    appointment = await appointments.create_appointment(
        business_id=business_id,
        service_id=request.service_id,
        appointment_date=request.appointment_date,
        start_time=request.start_time,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        customer_phone=request.customer_phone,
        notes=request.notes,
    )
    return appointment.to_dict()


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_booking(
        business_id: str = Path(..., description="The business ID"),
        appointment_id: str = Path(..., description="The appointment ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    appointment = await appointments.get_appointment(business_id, appointment_id)
    return appointment.to_dict()


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_booking(
        business_id: str = Path(..., description="The business ID"),
        appointment_id: str = Path(..., description="The appointment ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    appointment = await appointments.confirm_appointment(business_id, appointment_id)
    return appointment.to_dict()


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_booking(
        business_id: str = Path(..., description="The business ID"),
        appointment_id: str = Path(..., description="The appointment ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    appointment = await appointments.complete_appointment(business_id, appointment_id)
    return appointment.to_dict()


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_booking(
        request: BookingCancelRequest,
        business_id: str = Path(..., description="The business ID"),
        appointment_id: str = Path(..., description="The appointment ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    appointment = await appointments.cancel_appointment(business_id, appointment_id, request.reason)
    return appointment.to_dict()


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_booking(
        request: BookingRescheduleRequest,
        business_id: str = Path(..., description="The business ID"),
        appointment_id: str = Path(..., description="The appointment ID"),
        appointments: AppointmentService = Depends(get_appointment_service)
):
    """Move a booking. Its current slot does not count against the new one."""
    appointment = await appointments.reschedule_appointment(
        business_id, appointment_id, request.appointment_date, request.start_time
    )
    return appointment.to_dict()
