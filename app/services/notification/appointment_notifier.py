# app/services/notification/appointment_notifier.py
"""
Notification collaborator for the scheduling core.

Bookings and status changes are handed to Celery email tasks. Delivery
happens out of band; a failure to notify never touches appointment state.
"""
import logging
from typing import Optional

from app.config.settings import get_settings
from app.models.appointment import Appointment

logger = logging.getLogger(__name__)
settings = get_settings()


class AppointmentNotifier:
    """Queues client emails for appointment events"""

    def __init__(self, business_name: str):
        self.business_name = business_name

    @staticmethod
    def _when(appointment: Appointment) -> str:
        return (
            f"{appointment.appointment_date.strftime('%A, %B %d, %Y')} "
            f"{appointment.start_time.strftime('%H:%M')}-{appointment.end_time.strftime('%H:%M')}"
        )

    def appointment_booked(self, appointment: Appointment) -> None:
        from app.tasks.email_tasks import send_booking_received_email

        send_booking_received_email.delay(
            email=appointment.client_email,
            client_name=appointment.client_name,
            business_name=self.business_name,
            appointment_when=self._when(appointment),
            status=appointment.status,
        )

    def status_changed(self, appointment: Appointment) -> None:
        from app.tasks.email_tasks import send_appointment_status_email

        send_appointment_status_email.delay(
            email=appointment.client_email,
            client_name=appointment.client_name,
            business_name=self.business_name,
            appointment_when=self._when(appointment),
            status=appointment.status,
            reason=appointment.decline_reason or appointment.cancellation_reason,
        )


def notify(notifier: Optional[AppointmentNotifier], event: str, appointment: Appointment) -> None:
    """Invoke ``notifier.<event>(appointment)``, logging instead of raising on failure"""
    if notifier is None or not settings.NOTIFICATIONS_ENABLED:
        return
    try:
        getattr(notifier, event)(appointment)
    except Exception as e:
        logger.error(
            f"Notification '{event}' failed for appointment {appointment.id}: {e}",
            exc_info=True
        )
