# ============================================================================
# FILE: booking_engine/api/v1/services.py
# ============================================================================
from fastapi import APIRouter, Depends, Path

from booking_engine.api.dependencies import get_schedule_service
from booking_engine.schemas.availability import ServiceTimingResponse, ServiceTimingUpdateRequest
from booking_engine.services.availability.schedule_service import ScheduleService

router = APIRouter(prefix="/businesses/{business_id}/services", tags=["services"])


@router.patch("/{service_id}/timing", response_model=ServiceTimingResponse)
async def update_service_timing(
        request: ServiceTimingUpdateRequest,
        business_id: str = Path(..., description="The business ID"),
        service_id: str = Path(..., description="The service ID"),
        schedules: ScheduleService = Depends(get_schedule_service)
):
    """Change a service's duration and/or buffer. Cached slots for it are dropped."""
    service = await schedules.update_service_timing(
        business_id, service_id,
        duration=request.duration,
        buffer_time=request.buffer_time,
    )
    return service.to_dict()
