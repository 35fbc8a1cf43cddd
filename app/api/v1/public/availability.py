# ============================================================================
# app/api/v1/public/availability.py
# Self-service booking - no authentication, thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_business, get_notifier, get_template_cache
from app.config.database import get_db
from app.core.weekdays import weekday_of
from app.models.business import Business
from app.schemas.scheduling import AppointmentCreateRequest
from app.services.appointment.appointment_query_service import AppointmentQueryService
from app.services.appointment.conflict_service import AppointmentDraft, ConflictArbiter

router = APIRouter(prefix="/businesses/{business_id}")


@router.get("/availability")
def get_availability(
        target_date: date = Query(..., alias="date", description="Date to list slots for (YYYY-MM-DD)"),
        resource_id: Optional[UUID] = Query(None, description="Staff member or chair; omit for the business-wide calendar"),
        business: Business = Depends(get_business),
        cache=Depends(get_template_cache),
        db: Session = Depends(get_db)
):
    """
    List the slots of a date with their availability.
    A closed day returns an empty slot list.
    """
    slots = ConflictArbiter.compute_available_slots(
        db=db,
        business_id=business.id,
        target_date=target_date,
        resource_id=resource_id,
        cache=cache
    )
    return {
        "business_id": str(business.id),
        "date": target_date.isoformat(),
        "weekday": weekday_of(target_date).label,
        "resource_id": str(resource_id) if resource_id else None,
        "slots": [slot.to_dict() for slot in slots]
    }


@router.post("/appointments", status_code=201)
def book_appointment(
        request: AppointmentCreateRequest,
        business: Business = Depends(get_business),
        cache=Depends(get_template_cache),
        notifier=Depends(get_notifier),
        db: Session = Depends(get_db)
):
    """
    Request an appointment. It starts pending until staff approve it.
    Returns 409 when the interval was taken in the meantime.
    """
    appointment = ConflictArbiter.reserve_slot(
        db=db,
        business_id=business.id,
        booking_date=request.appointment_date,
        start_time=request.start_time,
        end_time=request.end_time,
        resource_id=request.resource_id,
        draft=AppointmentDraft(
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            service_id=request.service_id,
            notes=request.notes,
            is_direct_booking=True
        ),
        notifier=notifier,
        cache=cache
    )
    return AppointmentQueryService.serialize(appointment)
