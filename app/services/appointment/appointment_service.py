# ============================================================================
# app/services/appointment/appointment_service.py
# ============================================================================
"""Appointment lifecycle: approval, decline, completion and cancellation"""
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import AppointmentNotFound, InvalidTransition, ValidationError
from app.models.appointment import Appointment, AppointmentStatus
from app.services.notification.appointment_notifier import AppointmentNotifier, notify

logger = logging.getLogger(__name__)

S = AppointmentStatus

# Legal moves; statuses missing from the keys are terminal
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    S.PENDING.value: frozenset({S.APPROVED.value, S.DECLINED.value}),
    S.APPROVED.value: frozenset({S.COMPLETED.value, S.CANCELLED.value}),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def initial_status(is_direct_booking: bool) -> str:
    """Self-service bookings wait for staff approval; staff-entered ones are approved"""
    return S.PENDING.value if is_direct_booking else S.APPROVED.value


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentService:
    """Drives an appointment through its status machine"""

    @staticmethod
    def get_appointment(db: Session, business_id: UUID, appointment_id: UUID) -> Appointment:
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()
        if not appointment:
            raise AppointmentNotFound(appointment_id)
        return appointment

    @staticmethod
    def _transition(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            target: AppointmentStatus,
            action: str
    ) -> Appointment:
        appointment = AppointmentService.get_appointment(db, business_id, appointment_id)

        if not can_transition(appointment.status, target.value):
            logger.warning(
                f"Rejected {action} of appointment {appointment_id}: status is '{appointment.status}'"
            )
            raise InvalidTransition(appointment_id, appointment.status, action)

        appointment.status = target.value
        return appointment

    @staticmethod
    def _commit(db: Session, appointment: Appointment) -> Appointment:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(appointment)
        return appointment

    @staticmethod
    def approve(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            notes: Optional[str] = None,
            notifier: Optional[AppointmentNotifier] = None
    ) -> Appointment:
        """pending -> approved; stores optional staff notes"""
        appointment = AppointmentService._transition(
            db, business_id, appointment_id, S.APPROVED, "approve"
        )
        appointment.approved_at = _now()
        if notes:
            appointment.staff_notes = notes

        AppointmentService._commit(db, appointment)
        logger.info(f"Appointment {appointment_id} approved")
        notify(notifier, "status_changed", appointment)
        return appointment

    @staticmethod
    def decline(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            reason: str,
            notifier: Optional[AppointmentNotifier] = None
    ) -> Appointment:
        """pending -> declined; a non-blank reason is required"""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to decline an appointment")

        appointment = AppointmentService._transition(
            db, business_id, appointment_id, S.DECLINED, "decline"
        )
        appointment.declined_at = _now()
        appointment.decline_reason = reason.strip()

        AppointmentService._commit(db, appointment)
        logger.info(f"Appointment {appointment_id} declined: {appointment.decline_reason}")
        notify(notifier, "status_changed", appointment)
        return appointment

    @staticmethod
    def complete(db: Session, business_id: UUID, appointment_id: UUID) -> Appointment:
        """approved -> completed (driven by the post-visit workflow)"""
        appointment = AppointmentService._transition(
            db, business_id, appointment_id, S.COMPLETED, "complete"
        )
        appointment.completed_at = _now()

        AppointmentService._commit(db, appointment)
        logger.info(f"Appointment {appointment_id} completed")
        return appointment

    @staticmethod
    def cancel(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            reason: Optional[str] = None,
            notifier: Optional[AppointmentNotifier] = None
    ) -> Appointment:
        """approved -> cancelled (no-show and cancellation workflows); frees the slot"""
        appointment = AppointmentService._transition(
            db, business_id, appointment_id, S.CANCELLED, "cancel"
        )
        appointment.cancelled_at = _now()
        appointment.cancellation_reason = reason.strip() if reason else None

        AppointmentService._commit(db, appointment)
        logger.info(f"Appointment {appointment_id} cancelled")
        notify(notifier, "status_changed", appointment)
        return appointment

    @staticmethod
    def clear_review_flag(db: Session, business_id: UUID, appointment_id: UUID) -> Appointment:
        """Staff acknowledged an appointment orphaned by an availability change"""
        appointment = AppointmentService.get_appointment(db, business_id, appointment_id)
        if appointment.is_terminal:
            raise InvalidTransition(appointment_id, appointment.status, "clear the review flag of")
        appointment.needs_review = False
        appointment.review_reason = None
        return AppointmentService._commit(db, appointment)
