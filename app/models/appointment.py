# ===== app/models/appointment.py =====
from sqlalchemy import Column, String, Text, Date, Time, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.models.base import Base
import enum
import uuid


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold their time interval on the calendar
ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.APPROVED.value)

TERMINAL_STATUSES = (
    AppointmentStatus.DECLINED.value,
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELLED.value,
)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_business_date", "business_id", "appointment_date"),
        Index("ix_appointments_business_client", "business_id", "client_email"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)
    resource_id = Column(UUID(as_uuid=True), nullable=True)  # stylist/technician; NULL = business-wide

    # Client info
    client_name = Column(String, nullable=False)
    client_email = Column(String, nullable=False)
    client_phone = Column(String, nullable=True)

    # Appointment details
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    notes = Column(Text, nullable=True)
    staff_notes = Column(Text, nullable=True)

    # Lifecycle
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    is_direct_booking = Column(Boolean, nullable=False, default=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    declined_at = Column(DateTime(timezone=True), nullable=True)
    decline_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Set when an availability edit leaves this appointment outside opening hours
    needs_review = Column(Boolean, nullable=False, default=False)
    review_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def overlaps(self, start_time, end_time) -> bool:
        """Half-open interval intersection on the same date"""
        return self.start_time < end_time and start_time < self.end_time

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, date={self.appointment_date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
