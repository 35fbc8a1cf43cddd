"""
Tests for services/email/email_service.py
"""
import unittest
from unittest import mock

from app.services.email.email_service import EmailService


class TestAppointmentEmails(unittest.TestCase):

    def test_declined_email_carries_reason(self):
        subject, html, plain = EmailService.render_appointment_email(
            client_name="Ola",
            business_name="Northside Barbers",
            appointment_when="Monday, January 07, 2030 10:00-10:30",
            status="declined",
            reason="Fully booked"
        )

        self.assertEqual(subject, "Northside Barbers: Your booking request was declined")
        self.assertIn("Reason: Fully booked", plain)
        self.assertIn("10:00-10:30", html)

    def test_unknown_status_falls_back_to_generic_update(self):
        subject, _, _ = EmailService.render_appointment_email("Ola", "Shop", "soon", "rescheduled")
        self.assertEqual(subject, "Shop: Appointment update")

    @mock.patch("app.services.email.email_service.smtplib.SMTP")
    def test_send_goes_through_smtp(self, smtp):
        EmailService.send_appointment_email(
            email="ola@example.com",
            client_name="Ola",
            business_name="Shop",
            appointment_when="Monday 10:00-10:30",
            status="approved"
        )

        server = smtp.return_value
        server.starttls.assert_called_once()
        args = server.sendmail.call_args.args
        self.assertEqual(args[1], ["ola@example.com"])
        server.quit.assert_called_once()

    def test_client_text_is_escaped_in_html(self):
        _, html, plain = EmailService.render_appointment_email(
            client_name="<b>Ola</b>",
            business_name="Shop",
            appointment_when="Monday 10:00-10:30",
            status="declined",
            reason="<script>alert(1)</script>"
        )

        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertIn("Hi &lt;b&gt;Ola&lt;/b&gt;!", html)
        self.assertIn("Hi <b>Ola</b>!", plain)

    @mock.patch("app.services.email.email_service.smtplib.SMTP")
    def test_connection_closed_when_sendmail_fails(self, smtp):
        server = smtp.return_value
        server.sendmail.side_effect = OSError("connection reset")

        with self.assertRaises(OSError):
            EmailService.send_email("ola@example.com", "Hi", "<p>Hi</p>")

        server.quit.assert_called_once()


if __name__ == "__main__":
    unittest.main()
