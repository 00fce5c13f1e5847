"""
Pydantic schemas for availability, schedules and service timing
"""
from pydantic import BaseModel, Field
from typing import List, Optional


# ============================================================================
# Request Schemas
# ============================================================================

class AvailabilityCheckRequest(BaseModel):
    """A single requested slot. Date and time formats are checked by the validator."""
    service_id: str
    appointment_date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM")
    exclude_appointment_id: Optional[str] = None
    include_suggestions: bool = True


class WeeklyScheduleEntrySchema(BaseModel):
    day_of_week: int = Field(..., description="0 = Sunday ... 6 = Saturday")
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class WeeklyScheduleUpdateRequest(BaseModel):
    """Weekdays not listed keep their current hours"""
    entries: List[WeeklyScheduleEntrySchema] = Field(..., min_length=1)


class AvailabilityExceptionCreateRequest(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    is_available: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)


class ServiceTimingUpdateRequest(BaseModel):
    duration: Optional[int] = Field(None, description="Minutes")
    buffer_time: Optional[int] = Field(None, description="Minutes kept free after each appointment")


# ============================================================================
# Response Schemas
# ============================================================================

class AvailabilitySlotResponse(BaseModel):
    date: str
    start_time: str
    end_time: str


class DayAvailabilityResponse(BaseModel):
    date: str
    day_of_week: int
    slots: List[AvailabilitySlotResponse]


class DateRangeResponse(BaseModel):
    start_date: str
    days: int


class AvailabilityResponse(BaseModel):
    business_id: str
    service_id: Optional[str] = None
    date_range: DateRangeResponse
    availability: List[DayAvailabilityResponse]


class AvailabilityCheckResponse(BaseModel):
    available: bool
    conflicts: List[str]
    suggestions: List[AvailabilitySlotResponse]


class NextAvailableSlotResponse(BaseModel):
    business_id: str
    service_id: str
    slot: Optional[AvailabilitySlotResponse] = None


class WeeklyScheduleResponse(BaseModel):
    business_id: str
    entries: List[WeeklyScheduleEntrySchema]


class AvailabilityExceptionResponse(BaseModel):
    id: str
    business_id: str
    date: str
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


class ServiceTimingResponse(BaseModel):
    id: str
    business_id: str
    name: str
    duration: int
    buffer_time: int
