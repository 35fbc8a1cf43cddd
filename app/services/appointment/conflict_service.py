# app/services/appointment/conflict_service.py
"""
Arbitrates booking requests against the live appointment set.

Availability is computed from generated slots minus pending/approved
appointments of the same resource. A reservation re-checks the live set and
inserts inside the booking scope lock, so at most one request can claim a
given (business, date, resource, interval).
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import SlotConflict, ValidationError
from app.models.appointment import ACTIVE_STATUSES, Appointment
from app.models.service import Service
from app.services.appointment.appointment_service import initial_status
from app.services.appointment.booking_lock import BookingLockRegistry, booking_locks
from app.services.availability.availability_service import AvailabilityService, DayTemplate
from app.services.availability.slot_generator import Slot, generate_slots
from app.services.availability.template_cache import TemplateCache
from app.services.notification.appointment_notifier import AppointmentNotifier, notify

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class AppointmentDraft:
    """Client and booking details supplied with a reservation request"""
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    service_id: Optional[UUID] = None
    notes: Optional[str] = None
    is_direct_booking: bool = True


class ConflictArbiter:

    @staticmethod
    def active_appointments(
            db: Session,
            business_id: UUID,
            target_date: date,
            resource_id: Optional[UUID] = None
    ) -> List[Appointment]:
        """Pending/approved appointments of one resource (or the business-wide calendar) on a date"""
        query = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.appointment_date == target_date,
            Appointment.status.in_(ACTIVE_STATUSES)
        )
        if resource_id is None:
            query = query.filter(Appointment.resource_id.is_(None))
        else:
            query = query.filter(Appointment.resource_id == resource_id)
        return query.order_by(Appointment.start_time.asc()).all()

    @staticmethod
    def compute_available_slots(
            db: Session,
            business_id: UUID,
            target_date: date,
            resource_id: Optional[UUID] = None,
            cache: Optional[TemplateCache] = None
    ) -> List[Slot]:
        day = AvailabilityService.get_template_for_date(db, business_id, target_date, cache=cache)
        slots = generate_slots(day, target_date, resource_id=resource_id)
        if not slots:
            return []

        booked = ConflictArbiter.active_appointments(db, business_id, target_date, resource_id)
        return [
            slot.mark(not any(appt.overlaps(slot.start_time, slot.end_time) for appt in booked))
            for slot in slots
        ]

    @staticmethod
    def _resolve_end_time(
            db: Session,
            business_id: UUID,
            booking_date: date,
            start_time: time,
            end_time: Optional[time],
            service_id: Optional[UUID],
            day: DayTemplate
    ) -> time:
        if end_time is not None:
            return end_time

        duration = None
        if service_id is not None:
            service = db.query(Service).filter(
                Service.id == service_id,
                Service.business_id == business_id
            ).first()
            if service is None:
                raise ValidationError(f"Unknown service {service_id}")
            duration = service.duration
        duration = duration or day.slot_duration_minutes or settings.DEFAULT_SLOT_DURATION_MINUTES

        start = datetime.combine(booking_date, start_time)
        end = start + timedelta(minutes=duration)
        if end.date() != booking_date:
            raise ValidationError("Appointment must end on the day it starts")
        return end.time()

    @staticmethod
    def _check_business_hours(day: DayTemplate, start_time: time, end_time: time) -> None:
        if day.is_configured:
            if not day.is_open:
                raise ValidationError(f"The business is closed on {day.weekday.label}")
            if not day.contains(start_time, end_time):
                raise ValidationError(
                    f"Requested time is outside business hours "
                    f"({day.open_time.strftime('%H:%M')}-{day.close_time.strftime('%H:%M')})"
                )
            return

        # No template for this weekday: fixed business-hours floor
        opens = time(settings.FALLBACK_OPEN_HOUR)
        closes = time(settings.FALLBACK_CLOSE_HOUR)
        if start_time < opens or end_time > closes:
            raise ValidationError(
                f"Requested time is outside business hours "
                f"({opens.strftime('%H:%M')}-{closes.strftime('%H:%M')})"
            )

    @staticmethod
    def reserve_slot(
            db: Session,
            business_id: UUID,
            booking_date: date,
            start_time: time,
            draft: AppointmentDraft,
            end_time: Optional[time] = None,
            resource_id: Optional[UUID] = None,
            notifier: Optional[AppointmentNotifier] = None,
            cache: Optional[TemplateCache] = None,
            today: Optional[date] = None,
            locks: BookingLockRegistry = booking_locks
    ) -> Appointment:
        """
        Validate and atomically claim [start_time, end_time) on ``booking_date``.

        Raises ValidationError for past dates, closed days, out-of-hours or
        malformed requests, and SlotConflict when a pending or approved
        appointment of the same resource already intersects the interval.
        """
        if not draft.client_name or not draft.client_name.strip():
            raise ValidationError("client_name is required")
        if not draft.client_email or not draft.client_email.strip():
            raise ValidationError("client_email is required")

        if booking_date < (today or date.today()):
            raise ValidationError(f"Cannot book appointments in the past ({booking_date.isoformat()})")

        day = AvailabilityService.get_template_for_date(db, business_id, booking_date, cache=cache)
        end_time = ConflictArbiter._resolve_end_time(
            db, business_id, booking_date, start_time, end_time, draft.service_id, day
        )
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time")

        ConflictArbiter._check_business_hours(day, start_time, end_time)

        with locks.hold(db, business_id, booking_date, resource_id):
            try:
                booked = ConflictArbiter.active_appointments(db, business_id, booking_date, resource_id)
                clash = next((a for a in booked if a.overlaps(start_time, end_time)), None)
                if clash is not None:
                    logger.info(
                        f"Slot conflict for business {business_id} on {booking_date} "
                        f"{start_time.strftime('%H:%M')}-{end_time.strftime('%H:%M')}: held by {clash.id}"
                    )
                    raise SlotConflict(
                        f"{booking_date.isoformat()} {start_time.strftime('%H:%M')}-"
                        f"{end_time.strftime('%H:%M')} is no longer available"
                    )

                status = initial_status(draft.is_direct_booking)
                appointment = Appointment(
                    business_id=business_id,
                    service_id=draft.service_id,
                    resource_id=resource_id,
                    client_name=draft.client_name.strip(),
                    client_email=draft.client_email.strip().lower(),
                    client_phone=draft.client_phone,
                    appointment_date=booking_date,
                    start_time=start_time,
                    end_time=end_time,
                    notes=draft.notes,
                    status=status,
                    is_direct_booking=draft.is_direct_booking,
                    approved_at=None if draft.is_direct_booking else datetime.now(timezone.utc),
                )
                db.add(appointment)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(appointment)
        logger.info(
            f"Reserved {booking_date} {start_time.strftime('%H:%M')}-{end_time.strftime('%H:%M')} "
            f"for business {business_id} as appointment {appointment.id} ({appointment.status})"
        )
        notify(notifier, "appointment_booked", appointment)
        return appointment
