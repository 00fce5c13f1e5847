# ============================================================================
# FILE: booking_engine/api/v1/availability.py
# Slot listings and booking checks - thin HTTP layer
# ============================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from booking_engine.api.dependencies import get_availability_service, get_booking_conflict_service
from booking_engine.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    AvailabilityResponse,
    NextAvailableSlotResponse,
)
from booking_engine.services.availability.availability_service import AvailabilityService
from booking_engine.services.booking.booking_conflict_service import BookingConflictService

router = APIRouter(prefix="/businesses/{business_id}/availability", tags=["availability"])


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
        business_id: str = Path(..., description="The business ID"),
        service_id: Optional[str] = Query(None, description="Use this service's duration and buffer"),
        start_date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today for the business"),
        days: Optional[int] = Query(None, description="Number of days to cover"),
        slot_duration: Optional[int] = Query(None, description="Override slot length in minutes"),
        buffer_time: Optional[int] = Query(None, description="Override buffer in minutes"),
        window_start: Optional[str] = Query(None, description="Earliest slot start, HH:MM"),
        window_end: Optional[str] = Query(None, description="Latest slot end, HH:MM"),
        exclude_booked: bool = Query(True, description="Hide slots that collide with bookings"),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """
    Bookable slots grouped by date.
    Every date in the range is listed, closed dates with no slots.
    """
    return await availability.get_available_slots(
        business_id=business_id,
        service_id=service_id,
        start_date=start_date,
        days=days,
        slot_duration=slot_duration,
        buffer_time=buffer_time,
        window_start=window_start,
        window_end=window_end,
        exclude_booked=exclude_booked,
    )


@router.get("/check", response_model=AvailabilityCheckResponse)
async def check_availability(
        business_id: str = Path(..., description="The business ID"),
        service_id: str = Query(...),
        appointment_date: str = Query(..., description="YYYY-MM-DD"),
        start_time: str = Query(..., description="HH:MM"),
        exclude_appointment_id: Optional[str] = Query(None),
        conflicts: BookingConflictService = Depends(get_booking_conflict_service)
):
    """Check whether a single slot can be booked"""
    result = await conflicts.validate_booking_request(
        business_id, service_id, appointment_date, start_time,
        exclude_appointment_id=exclude_appointment_id,
    )
    return result.to_dict()


@router.post("/check", response_model=AvailabilityCheckResponse)
async def check_availability_body(
        request: AvailabilityCheckRequest,
        business_id: str = Path(..., description="The business ID"),
        conflicts: BookingConflictService = Depends(get_booking_conflict_service)
):
    """Same as the GET form, with the request in the body"""
    result = await conflicts.validate_booking_request(
        business_id,
        request.service_id,
        request.appointment_date,
        request.start_time,
        exclude_appointment_id=request.exclude_appointment_id,
        include_suggestions=request.include_suggestions,
    )
    return result.to_dict()


@router.get("/next", response_model=NextAvailableSlotResponse)
async def get_next_available_slot(
        business_id: str = Path(..., description="The business ID"),
        service_id: str = Query(...),
        start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        availability: AvailabilityService = Depends(get_availability_service)
):
    slot = await availability.get_next_available_slot(business_id, service_id, start_date)
    return {
        "business_id": business_id,
        "service_id": service_id,
        "slot": slot.to_dict() if slot else None,
    }
