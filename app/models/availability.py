# app/models/availability.py
from sqlalchemy import Column, Integer, Boolean, Time, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.models.base import Base
import uuid


class WeeklyAvailabilityTemplate(Base):
    """Opening hours for one weekday of a business (overwritten, never deleted)"""
    __tablename__ = "weekly_availability_templates"
    __table_args__ = (
        UniqueConstraint("business_id", "day_of_week", name="uq_availability_business_weekday"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday (app.core.weekdays)
    is_open = Column(Boolean, nullable=False, default=False)
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="availability_templates")

    def __repr__(self):
        return (
            f"<WeeklyAvailabilityTemplate(business_id={self.business_id}, "
            f"day={self.day_of_week}, open={self.is_open})>"
        )
