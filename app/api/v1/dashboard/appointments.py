# ============================================================================
# app/api/v1/dashboard/appointments.py
# Staff endpoints - thin HTTP layer over the appointment services
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_business, get_notifier, get_template_cache
from app.config.database import get_db
from app.models.business import Business
from app.schemas.scheduling import (
    AppointmentCreateRequest,
    ApproveRequest,
    CancelRequest,
    DeclineRequest
)
from app.services.appointment.appointment_query_service import AppointmentQueryService
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.conflict_service import AppointmentDraft, ConflictArbiter

router = APIRouter(prefix="/businesses/{business_id}/appointments")


@router.post("", status_code=201)
def create_appointment(
        request: AppointmentCreateRequest,
        business: Business = Depends(get_business),
        cache=Depends(get_template_cache),
        notifier=Depends(get_notifier),
        db: Session = Depends(get_db)
):
    """Enter a booking on behalf of a client; staff bookings are approved immediately."""
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
            is_direct_booking=False
        ),
        notifier=notifier,
        cache=cache
    )
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.get("")
def list_appointments(
        start_date: Optional[date] = Query(None, description="Filter appointments on or after this date"),
        end_date: Optional[date] = Query(None, description="Filter appointments on or before this date"),
        status: Optional[str] = Query(None,
                                      description="Filter by status (pending, approved, declined, completed, cancelled)"),
        client_email: Optional[str] = Query(None, description="Filter by client email"),
        resource_id: Optional[UUID] = Query(None, description="Filter by staff member or chair"),
        needs_review: Optional[bool] = Query(None, description="Only appointments flagged by an availability change"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Get a list of the business's appointments."""
    return AppointmentQueryService.list_appointments(
        db=db,
        business_id=business.id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        client_email=client_email,
        resource_id=resource_id,
        needs_review=needs_review,
        skip=skip,
        limit=limit
    )


@router.get("/stats/summary")
def get_appointment_stats(
        start_date: Optional[date] = Query(None, description="Stats from this date"),
        end_date: Optional[date] = Query(None, description="Stats until this date"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Get summary statistics about the business's appointments."""
    return AppointmentQueryService.get_appointment_stats(
        db=db,
        business_id=business.id,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    appointment = AppointmentService.get_appointment(db, business.id, appointment_id)
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.post("/{appointment_id}/approve")
def approve_appointment(
        request: Optional[ApproveRequest] = None,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        notifier=Depends(get_notifier),
        db: Session = Depends(get_db)
):
    appointment = AppointmentService.approve(
        db, business.id, appointment_id,
        notes=request.notes if request else None,
        notifier=notifier
    )
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.post("/{appointment_id}/decline")
def decline_appointment(
        request: DeclineRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        notifier=Depends(get_notifier),
        db: Session = Depends(get_db)
):
    appointment = AppointmentService.decline(
        db, business.id, appointment_id, reason=request.reason, notifier=notifier
    )
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.post("/{appointment_id}/complete")
def complete_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    appointment = AppointmentService.complete(db, business.id, appointment_id)
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.post("/{appointment_id}/cancel")
def cancel_appointment(
        request: Optional[CancelRequest] = None,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        notifier=Depends(get_notifier),
        db: Session = Depends(get_db)
):
    """Cancel an approved appointment (including no-shows); the slot becomes free again."""
    appointment = AppointmentService.cancel(
        db, business.id, appointment_id,
        reason=request.reason if request else None,
        notifier=notifier
    )
    return AppointmentQueryService.serialize(appointment, detailed=True)


@router.post("/{appointment_id}/clear-review")
def clear_review_flag(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Acknowledge an appointment flagged by an availability change."""
    appointment = AppointmentService.clear_review_flag(db, business.id, appointment_id)
    return AppointmentQueryService.serialize(appointment, detailed=True)
