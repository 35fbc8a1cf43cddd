# ============================================================================
# app/api/v1/dashboard/availability.py
# Weekly opening hours management
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.api.dependencies import get_business, get_template_cache
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import DayAvailabilityRequest
from app.services.appointment.appointment_query_service import AppointmentQueryService
from app.services.availability.availability_service import AvailabilityService, DayTemplate

router = APIRouter(prefix="/businesses/{business_id}/availability")


@router.get("")
def get_week(
        business: Business = Depends(get_business),
        cache=Depends(get_template_cache),
        db: Session = Depends(get_db)
):
    """All seven weekdays, Sunday (0) first. Unconfigured days are reported closed."""
    week = AvailabilityService.get_week_template(db, business.id, cache=cache)
    return {
        "business_id": str(business.id),
        "days": [dict(day.to_dict(), weekday=day.weekday.label) for day in week]
    }


@router.put("/{day_of_week}")
def set_day(
        request: DayAvailabilityRequest,
        day_of_week: int = Path(..., description="0=Sunday ... 6=Saturday"),
        business: Business = Depends(get_business),
        cache=Depends(get_template_cache),
        db: Session = Depends(get_db)
):
    """
    Replace one weekday's hours.
    Upcoming appointments left outside the new hours are flagged for review, not cancelled.
    """
    template, flagged = AvailabilityService.set_day_template(
        db=db,
        business_id=business.id,
        day_of_week=day_of_week,
        is_open=request.is_open,
        open_time=request.open_time,
        close_time=request.close_time,
        slot_duration_minutes=request.slot_duration_minutes,
        cache=cache
    )
    day = DayTemplate.from_model(template)
    return {
        "business_id": str(business.id),
        "day": dict(day.to_dict(), weekday=day.weekday.label),
        "flagged_appointments": [AppointmentQueryService.serialize(appt) for appt in flagged]
    }
