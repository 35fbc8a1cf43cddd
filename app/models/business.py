# app/models/business.py
"""
Business Model
Owns availability templates, appointments, services and derived analytics.
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    business_type = Column(String(100), nullable=True)

    # Informational only; scheduling is wall-clock local to the business
    timezone = Column(String(50), default="UTC")

    availability_templates = relationship(
        "WeeklyAvailabilityTemplate",
        back_populates="business",
        order_by="WeeklyAvailabilityTemplate.day_of_week",
    )
    services = relationship("Service", back_populates="business")

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"
