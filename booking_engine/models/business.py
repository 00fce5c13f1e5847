# booking_engine/models/business.py
"""
Business Model - the owner of schedules, services and appointments
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking_engine.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=True, unique=True)

    # IANA zone name; appointment dates and times are local to it
    timezone = Column(String(50), default="UTC")

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    weekly_availability = relationship(
        "WeeklyAvailability", back_populates="business", cascade="all, delete-orphan"
    )
    availability_exceptions = relationship(
        "AvailabilityException", back_populates="business", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"
