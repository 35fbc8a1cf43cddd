# ===== app/tasks/email_tasks.py =====
from typing import Optional
import logging

from app.config.celery_config import celery_app
from app.services.email.email_service import EmailService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_booking_received_email(
        self,
        email: str,
        client_name: str,
        business_name: str,
        appointment_when: str,
        status: str
):
    """
    Confirm a new booking to the client

    Args:
        email: Client's email address
        client_name: Client's name as booked
        business_name: Name of the business
        appointment_when: Human readable date and time range
        status: Initial status (pending for self-service, approved for staff bookings)
    """
    try:
        logger.info(f"Sending booking email to {email} for {business_name}")

        EmailService.send_appointment_email(
            email=email,
            client_name=client_name,
            business_name=business_name,
            appointment_when=appointment_when,
            status=status
        )

        logger.info(f"Booking email sent successfully to {email}")
        return {"status": "success", "email": email}

    except Exception as exc:
        logger.error(f"Failed to send booking email to {email}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )


@celery_app.task(bind=True, max_retries=3)
def send_appointment_status_email(
        self,
        email: str,
        client_name: str,
        business_name: str,
        appointment_when: str,
        status: str,
        reason: Optional[str] = None
):
    """Tell the client their appointment was approved, declined or cancelled"""
    try:
        logger.info(f"Sending '{status}' appointment email to {email}")

        EmailService.send_appointment_email(
            email=email,
            client_name=client_name,
            business_name=business_name,
            appointment_when=appointment_when,
            status=status,
            reason=reason
        )

        logger.info(f"Appointment status email sent successfully to {email}")
        return {"status": "success", "email": email, "appointment_status": status}

    except Exception as exc:
        logger.error(f"Failed to send appointment status email to {email}: {exc}")

        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
