# ===== app/services/email/email_service.py =====
import html
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)

# Subject line and lead sentence per appointment status
STATUS_MESSAGES = {
    "pending": ("Booking request received", "We received your booking request. The team will confirm it shortly."),
    "approved": ("Your appointment is confirmed", "Your appointment is confirmed. We look forward to seeing you."),
    "declined": ("Your booking request was declined", "Unfortunately we could not accept your booking request."),
    "cancelled": ("Your appointment was cancelled", "Your appointment has been cancelled."),
    "completed": ("Thanks for visiting", "Thank you for your visit. We hope to see you again soon."),
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)

        Returns:
            bool: True if email sent successfully
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
            msg['To'] = to_email

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            server = EmailService._get_smtp_connection()
            try:
                server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
            finally:
                server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

    @staticmethod
    def render_appointment_email(
            client_name: str,
            business_name: str,
            appointment_when: str,
            status: str,
            reason: Optional[str] = None
    ) -> tuple:
        """Build (subject, html, plain text) for an appointment status email"""
        title, lead = STATUS_MESSAGES.get(status, ("Appointment update", "Your appointment was updated."))
        subject = f"{business_name}: {title}"
        reason_line = f"Reason: {reason}" if reason else ""
        safe = {
            "client_name": html.escape(client_name),
            "business_name": html.escape(business_name),
            "appointment_when": html.escape(appointment_when),
            "reason_line": html.escape(reason_line),
        }

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background-color: #4f46e5; padding: 24px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 24px;">{title}</h1>
            </div>

            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                <h2 style="color: #333; margin-top: 0;">Hi {safe["client_name"]}!</h2>
                <p style="font-size: 16px; color: #555;">{lead}</p>
                <p style="font-size: 16px; color: #333;"><strong>{safe["appointment_when"]}</strong></p>
                <p style="font-size: 14px; color: #777;">{safe["reason_line"]}</p>
                <p style="font-size: 14px; color: #999; margin-top: 30px;">{safe["business_name"]}</p>
            </div>
        </body>
        </html>
        """

        plain_text = "\n".join([
            f"Hi {client_name}!",
            "",
            lead,
            appointment_when,
            reason_line,
            "",
            business_name,
        ])

        return subject, html_content, plain_text

    @staticmethod
    def send_appointment_email(
            email: str,
            client_name: str,
            business_name: str,
            appointment_when: str,
            status: str,
            reason: Optional[str] = None
    ) -> bool:
        subject, html_content, plain_text = EmailService.render_appointment_email(
            client_name=client_name,
            business_name=business_name,
            appointment_when=appointment_when,
            status=status,
            reason=reason,
        )
        return EmailService.send_email(
            to_email=email,
            subject=subject,
            html_content=html_content,
            plain_text=plain_text
        )
