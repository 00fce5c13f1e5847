# ============================================================================
# FILE: booking_engine/api/v1/schedule.py
# Weekly hours and exception dates
# ============================================================================
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from booking_engine.api.dependencies import get_schedule_service
from booking_engine.schemas.availability import (
    AvailabilityExceptionCreateRequest,
    AvailabilityExceptionResponse,
    WeeklyScheduleResponse,
    WeeklyScheduleUpdateRequest,
)
from booking_engine.services.availability.exception_calendar import ExceptionDate
from booking_engine.services.availability.schedule_service import ScheduleService
from booking_engine.services.availability.weekly_schedule import WeeklyScheduleEntry
from booking_engine.utils.time_utils import parse_date

router = APIRouter(prefix="/businesses/{business_id}/availability", tags=["schedule"])


@router.get("/weekly", response_model=WeeklyScheduleResponse)
async def get_weekly_schedule(
        business_id: str = Path(..., description="The business ID"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    """All seven weekdays; days never configured are reported closed"""
    weekly = await schedules.get_weekly(business_id)
    return {
        "business_id": business_id,
        "entries": [
            {
                "day_of_week": entry.day_of_week,
                "is_available": entry.is_available,
                "start_time": entry.start_time,
                "end_time": entry.end_time,
            }
            for entry in weekly.entries
        ],
    }


@router.put("/weekly", response_model=WeeklyScheduleResponse)
async def update_weekly_schedule(
        request: WeeklyScheduleUpdateRequest,
        business_id: str = Path(..., description="The business ID"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    entries = [
        WeeklyScheduleEntry(
            day_of_week=item.day_of_week,
            is_available=item.is_available,
            start_time=item.start_time,
            end_time=item.end_time,
        )
        for item in request.entries
    ]
    await schedules.update_weekly(business_id, entries)
    return await get_weekly_schedule(business_id, schedules)


@router.get("/exceptions", response_model=List[AvailabilityExceptionResponse])
async def list_exceptions(
        business_id: str = Path(..., description="The business ID"),
        start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    start = parse_date(start_date, field="start_date") if start_date else None
    end = parse_date(end_date, field="end_date") if end_date else None

    rows = await schedules.list_exceptions(business_id, start, end)
    return [row.to_dict() for row in rows]


@router.post("/exceptions", response_model=AvailabilityExceptionResponse, status_code=status.HTTP_201_CREATED)
async def create_exception(
        request: AvailabilityExceptionCreateRequest,
        business_id: str = Path(..., description="The business ID"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    """Close a date, or give it special hours"""
    exception = ExceptionDate(
        date=request.date,
        is_available=request.is_available,
        start_time=request.start_time,
        end_time=request.end_time,
        reason=request.reason,
    )
    row = await schedules.add_exception(business_id, exception)
    return row.to_dict()


@router.delete("/exceptions/{exception_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exception(
        business_id: str = Path(..., description="The business ID"),
        exception_id: str = Path(..., description="The exception ID"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    await schedules.delete_exception(business_id, exception_id)
