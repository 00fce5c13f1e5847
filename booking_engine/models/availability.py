# booking_engine/models/availability.py
from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking_engine.models.base import Base


class WeeklyAvailability(Base):
    """Recurring opening hours, one row per weekday per business"""
    __tablename__ = "weekly_availability"
    __table_args__ = (
        UniqueConstraint("business_id", "day_of_week", name="uq_weekly_availability_business_day"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    is_available = Column(Boolean, nullable=False, default=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)  # HH:MM

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="weekly_availability")


class AvailabilityException(Base):
    """Specific date overrides (holidays, time-off, special hours)"""
    __tablename__ = "availability_exceptions"
    __table_args__ = (
        UniqueConstraint("business_id", "date", name="uq_availability_exception_business_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    is_available = Column(Boolean, nullable=False)  # False = closed all day
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    reason = Column(String, nullable=True)  # "Holiday", "Vacation", etc.

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    business = relationship("Business", back_populates="availability_exceptions")

    def to_dict(self):
        return {
            "id": self.id,
            "business_id": self.business_id,
            "date": self.date.isoformat(),
            "is_available": self.is_available,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "reason": self.reason,
        }
