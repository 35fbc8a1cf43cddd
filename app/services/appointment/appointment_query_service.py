# ============================================================================
# app/services/appointment/appointment_query_service.py
# Read side of the appointment store - no FastAPI dependencies
# ============================================================================
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional, Dict, Any
from uuid import UUID

from app.core.exceptions import ValidationError
from app.models.appointment import Appointment, AppointmentStatus


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


class AppointmentQueryService:
    """Listing, lookup and statistics over a business's appointments."""

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[str] = None,
            client_email: Optional[str] = None,
            resource_id: Optional[UUID] = None,
            needs_review: Optional[bool] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters; end_date is inclusive."""
        if status is not None and status not in {s.value for s in AppointmentStatus}:
            raise ValidationError(f"Unknown appointment status '{status}'")
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.appointment_date >= start_date)
        if end_date:
            query = query.filter(Appointment.appointment_date <= end_date)
        if status:
            query = query.filter(Appointment.status == status)
        if client_email:
            query = query.filter(Appointment.client_email == client_email.strip().lower())
        if resource_id:
            query = query.filter(Appointment.resource_id == resource_id)
        if needs_review is not None:
            query = query.filter(Appointment.needs_review == needs_review)

        query = query.order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "business_id": str(business_id),
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": _iso(start_date),
                "end_date": _iso(end_date),
                "status": status,
                "client_email": client_email,
                "resource_id": str(resource_id) if resource_id else None,
                "needs_review": needs_review
            },
            "appointments": [AppointmentQueryService.serialize(appt) for appt in appointments]
        }

    @staticmethod
    def get_appointment_stats(
            db: Session,
            business_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """Counts by status, service and booking source over an optional date range."""
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.appointment_date >= start_date)
        if end_date:
            query = query.filter(Appointment.appointment_date <= end_date)

        appointments = query.all()

        by_status = {}
        by_service = {}
        by_source = {"direct": 0, "staff": 0}
        for appt in appointments:
            by_status[appt.status] = by_status.get(appt.status, 0) + 1

            service = str(appt.service_id) if appt.service_id else "unspecified"
            by_service[service] = by_service.get(service, 0) + 1

            by_source["direct" if appt.is_direct_booking else "staff"] += 1

        return {
            "business_id": str(business_id),
            "period": {
                "start": _iso(start_date),
                "end": _iso(end_date)
            },
            "total_appointments": len(appointments),
            "by_status": by_status,
            "by_service": by_service,
            "by_source": by_source,
            "needs_review": sum(1 for appt in appointments if appt.needs_review and appt.is_active),
            "unique_clients": len({appt.client_email for appt in appointments})
        }

    @staticmethod
    def serialize(appointment: Appointment, detailed: bool = False) -> Dict[str, Any]:
        """Convert Appointment model to dictionary."""
        base = {
            "id": str(appointment.id),
            "business_id": str(appointment.business_id),
            "service_id": str(appointment.service_id) if appointment.service_id else None,
            "resource_id": str(appointment.resource_id) if appointment.resource_id else None,
            "client_name": appointment.client_name,
            "client_email": appointment.client_email,
            "client_phone": appointment.client_phone,
            "appointment_date": appointment.appointment_date.isoformat(),
            "start_time": appointment.start_time.strftime("%H:%M"),
            "end_time": appointment.end_time.strftime("%H:%M"),
            "status": appointment.status,
            "is_direct_booking": appointment.is_direct_booking,
            "notes": appointment.notes,
            "needs_review": appointment.needs_review,
            "review_reason": appointment.review_reason,
            "created_at": _iso(appointment.created_at)
        }

        if detailed:
            base.update({
                "staff_notes": appointment.staff_notes,
                "approved_at": _iso(appointment.approved_at),
                "declined_at": _iso(appointment.declined_at),
                "decline_reason": appointment.decline_reason,
                "completed_at": _iso(appointment.completed_at),
                "cancelled_at": _iso(appointment.cancelled_at),
                "cancellation_reason": appointment.cancellation_reason,
                "updated_at": _iso(appointment.updated_at)
            })

        return base
