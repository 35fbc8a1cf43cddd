# app/models/client_insight.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class InsightType(str, enum.Enum):
    LOYALTY = "loyalty"
    PREFERENCES = "preferences"
    LIFETIME_VALUE = "lifetime_value"
    REBOOKING = "rebooking"


class ClientInsight(Base):
    """Per-client derived data; a recomputation supersedes the previous rows"""
    __tablename__ = "client_insights"
    __table_args__ = (
        Index("ix_client_insights_lookup", "business_id", "client_email", "is_current"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    client_email = Column(String, nullable=False)

    insight_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    confidence = Column(Integer, nullable=False, default=1)  # 1..5

    is_current = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ClientInsight(client={self.client_email}, type={self.insight_type}, current={self.is_current})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "client_email": self.client_email,
            "type": self.insight_type,
            "data": self.data,
            "confidence": self.confidence,
            "is_current": self.is_current,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
