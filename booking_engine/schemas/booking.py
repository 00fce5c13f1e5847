"""
Pydantic schemas for appointment booking
"""
from pydantic import BaseModel, Field
from typing import Optional


class BookingCreateRequest(BaseModel):
    service_id: str
    appointment_date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM")
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_email: Optional[str] = Field(None, max_length=320)
    customer_phone: Optional[str] = Field(None, max_length=32)
    notes: Optional[str] = None


class BookingRescheduleRequest(BaseModel):
    appointment_date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM")


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    service_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    appointment_date: str
    start_time: str
    end_time: str
    status: str
    notes: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
