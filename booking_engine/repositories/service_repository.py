# booking_engine/repositories/service_repository.py
from typing import Optional

from sqlalchemy.orm import Session

from booking_engine.core.exceptions import NotFoundError
from booking_engine.models.service import Service
from booking_engine.services.availability.slot_generator import ServiceTiming


class ServiceRepository:
    """Lookups of bookable services"""

    def __init__(self, db: Session):
        self.db = db

    async def get_service(self, business_id: str, service_id: str) -> Service:
        """Active service of the business, or NotFoundError"""
        service = self.db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id,
            Service.is_active == True  # noqa: E712
        ).first()

        if not service:
            raise NotFoundError("Service", service_id, "Service not found or inactive")
        return service

    async def get_timing(self, business_id: str, service_id: str) -> ServiceTiming:
        service = await self.get_service(business_id, service_id)
        return ServiceTiming(
            duration=service.duration,
            buffer_time=service.buffer_time or 0,
            service_id=service.id,
        )

    async def update_timing(
            self,
            business_id: str,
            service_id: str,
            duration: Optional[int] = None,
            buffer_time: Optional[int] = None
    ) -> Service:
        service = await self.get_service(business_id, service_id)

        # Validates the combination before anything is written
        timing = ServiceTiming(
            duration=service.duration if duration is None else duration,
            buffer_time=(service.buffer_time or 0) if buffer_time is None else buffer_time,
        )

        service.duration = timing.duration
        service.buffer_time = timing.buffer_time
        self.db.commit()
        self.db.refresh(service)
        return service
