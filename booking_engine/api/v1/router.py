"""
API v1 router setup
"""
from fastapi import APIRouter

from booking_engine.api.v1 import availability, bookings, schedule, services

api_v1_router = APIRouter()

# ============================================================================
# AVAILABILITY
# ============================================================================
api_v1_router.include_router(availability.router)
api_v1_router.include_router(schedule.router)
api_v1_router.include_router(services.router)

# ============================================================================
# BOOKINGS
# ============================================================================
api_v1_router.include_router(bookings.router)
