# app/models/scheduling_suggestion.py
"""
Scheduling suggestions derived from booking history.
Rows are immutable once written, apart from the staff acceptance flag.
"""
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class SuggestionType(str, enum.Enum):
    REBOOKING = "rebooking"
    PRICING = "pricing"
    BUSY_HOURS = "busy-hours"
    OPTIMAL_SLOTS = "optimal-slots"


class SchedulingSuggestion(Base):
    __tablename__ = "scheduling_suggestions"
    __table_args__ = (
        Index("ix_suggestions_business_type", "business_id", "suggestion_type"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)

    suggestion_type = Column(String(50), nullable=False)
    suggestion = Column(Text, nullable=False)
    reasoning = Column(Text, nullable=False)
    priority = Column(Integer, nullable=False, default=3)  # 1 (low) .. 5 (high)
    is_accepted = Column(Boolean, nullable=True)  # None until staff decides

    # What the suggestion is about, when it has a single subject
    client_email = Column(String, nullable=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<SchedulingSuggestion(id={self.id}, type={self.suggestion_type}, priority={self.priority})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "type": self.suggestion_type,
            "suggestion": self.suggestion,
            "reasoning": self.reasoning,
            "priority": self.priority,
            "is_accepted": self.is_accepted,
            "client_email": self.client_email,
            "service_id": str(self.service_id) if self.service_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
