"""
Pydantic schemas for scheduling requests
Times are wall-clock HH:MM in the business's local time.
"""
from datetime import date as Date, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.scheduling_suggestion import SuggestionType


# ============================================================================
# Availability
# ============================================================================

class DayAvailabilityRequest(BaseModel):
    """Replaces one weekday's opening hours"""
    is_open: bool
    open_time: Optional[time] = Field(None, description="HH:MM, required when open")
    close_time: Optional[time] = Field(None, description="HH:MM, required when open")
    slot_duration_minutes: Optional[int] = Field(None, gt=0, description="Defaults to 30")


# ============================================================================
# Appointments
# ============================================================================

class AppointmentCreateRequest(BaseModel):
    client_name: str = Field(..., max_length=200)
    client_email: EmailStr
    client_phone: Optional[str] = Field(None, max_length=50)
    appointment_date: Date
    start_time: time
    end_time: Optional[time] = Field(None, description="Derived from the service or slot length when omitted")
    service_id: Optional[UUID] = None
    resource_id: Optional[UUID] = Field(None, description="Staff member or chair; omit for the business-wide calendar")
    notes: Optional[str] = None


class ApproveRequest(BaseModel):
    notes: Optional[str] = None


class DeclineRequest(BaseModel):
    reason: str


class CancelRequest(BaseModel):
    reason: Optional[str] = None


# ============================================================================
# Suggestions & insights
# ============================================================================

class SuggestionGenerateRequest(BaseModel):
    type: SuggestionType
    service_id: Optional[UUID] = Field(None, description="Required for pricing suggestions")
    target_date: Optional[Date] = Field(None, description="Limits busy-hour analysis to one day")


class SuggestionAcceptRequest(BaseModel):
    accepted: bool


class ClientInsightRecomputeRequest(BaseModel):
    email: EmailStr
