"""
Tests for the HTTP layer: routing, status codes and error mapping
"""
import unittest
import uuid
from datetime import date, timedelta

from fastapi.testclient import TestClient

from app.api.dependencies import get_notifier, get_template_cache
from app.config.database import get_db
from app.main import app
from tests.support import DatabaseTestCase

# Far enough ahead to never be in the past; a Monday
BOOKING_DATE = "2030-01-07"


class ApiTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_template_cache] = lambda: None
        app.dependency_overrides[get_notifier] = lambda: None
        self.client = TestClient(app)

        self.business_id = str(self.business.id)
        self.public = f"/api/v1/public/businesses/{self.business_id}"
        self.dashboard = f"/api/v1/dashboard/businesses/{self.business_id}"

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def open_monday(self):
        response = self.client.put(
            f"{self.dashboard}/availability/1",
            json={"is_open": True, "open_time": "09:00", "close_time": "17:00", "slot_duration_minutes": 30}
        )
        self.assertEqual(response.status_code, 200)
        return response.json()

    def book(self, start="10:00", end="10:30", url=None, **extra):
        payload = {
            "client_name": "Maya Singh",
            "client_email": "maya@example.com",
            "appointment_date": BOOKING_DATE,
            "start_time": start,
            "end_time": end,
        }
        payload.update(extra)
        return self.client.post(f"{url or self.public}/appointments", json=payload)


class TestAvailabilityEndpoints(ApiTestCase):

    def test_week_listing(self):
        self.open_monday()

        days = self.client.get(f"{self.dashboard}/availability").json()["days"]
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0]["weekday"], "Sunday")
        self.assertFalse(days[0]["is_open"])
        self.assertEqual((days[1]["open_time"], days[1]["close_time"]), ("09:00", "17:00"))

    def test_invalid_window_is_bad_request(self):
        response = self.client.put(
            f"{self.dashboard}/availability/1",
            json={"is_open": True, "open_time": "17:00", "close_time": "09:00"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "validation_error")

    def test_zero_slot_duration_is_rejected(self):
        response = self.client.put(
            f"{self.dashboard}/availability/1",
            json={"is_open": True, "open_time": "09:00", "close_time": "17:00", "slot_duration_minutes": 0}
        )
        self.assertEqual(response.status_code, 422)

    def test_public_slots(self):
        self.open_monday()
        self.assertEqual(self.book().status_code, 201)

        body = self.client.get(f"{self.public}/availability", params={"date": BOOKING_DATE}).json()
        self.assertEqual(body["weekday"], "Monday")
        self.assertEqual(len(body["slots"]), 16)
        taken = [s["start_time"] for s in body["slots"] if not s["available"]]
        self.assertEqual(taken, ["10:00"])

    def test_unknown_business_is_not_found(self):
        response = self.client.get(
            f"/api/v1/public/businesses/{uuid.uuid4()}/availability", params={"date": BOOKING_DATE}
        )
        self.assertEqual(response.status_code, 404)


class TestBookingEndpoints(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.open_monday()

    def test_public_booking_is_pending(self):
        response = self.book()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "pending")
        self.assertEqual((body["start_time"], body["end_time"]), ("10:00", "10:30"))

    def test_dashboard_booking_is_approved(self):
        response = self.book(url=self.dashboard)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], "approved")

    def test_conflict_is_409(self):
        self.assertEqual(self.book().status_code, 201)

        response = self.book(start="10:15", end="10:45")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "slot_conflict")

    def test_malformed_client_email_is_422(self):
        for email in ("a@", "@", "x y@@"):
            self.assertEqual(self.book(client_email=email).status_code, 422)

        response = self.client.post(
            f"{self.dashboard}/client-insights/recompute", json={"email": "a@"}
        )
        self.assertEqual(response.status_code, 422)

    def test_outside_hours_and_past_dates_are_400(self):
        self.assertEqual(self.book(start="17:00", end="17:30").status_code, 400)

        past = (date.today() - timedelta(days=7)).isoformat()
        response = self.book(appointment_date=past)
        self.assertEqual(response.status_code, 400)

    def test_lifecycle_over_http(self):
        appointment_id = self.book().json()["id"]
        base = f"{self.dashboard}/appointments/{appointment_id}"

        self.assertEqual(self.client.post(f"{base}/decline", json={"reason": ""}).status_code, 400)

        approved = self.client.post(f"{base}/approve", json={"notes": "Regular"})
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["staff_notes"], "Regular")

        again = self.client.post(f"{base}/approve")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "invalid_transition")

        self.assertEqual(self.client.post(f"{base}/complete").json()["status"], "completed")
        self.assertEqual(self.client.post(f"{base}/cancel").status_code, 409)

    def test_unknown_appointment_is_404(self):
        response = self.client.get(f"{self.dashboard}/appointments/{uuid.uuid4()}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "appointment_not_found")

    def test_listing_and_stats(self):
        self.book()
        self.book(start="11:00", end="11:30", url=self.dashboard, client_email="Kai@Example.com")

        listing = self.client.get(f"{self.dashboard}/appointments", params={"status": "approved"}).json()
        self.assertEqual(listing["total_appointments"], 1)
        self.assertEqual(listing["appointments"][0]["client_email"], "kai@example.com")

        stats = self.client.get(f"{self.dashboard}/appointments/stats/summary").json()
        self.assertEqual(stats["total_appointments"], 2)
        self.assertEqual(stats["by_status"], {"pending": 1, "approved": 1})
        self.assertEqual(stats["by_source"], {"direct": 1, "staff": 1})

        bad = self.client.get(f"{self.dashboard}/appointments", params={"status": "booked"})
        self.assertEqual(bad.status_code, 400)

    def test_narrowing_hours_reports_flagged_appointments(self):
        self.book(start="16:00", end="16:30", url=self.dashboard)

        response = self.client.put(
            f"{self.dashboard}/availability/1",
            json={"is_open": True, "open_time": "09:00", "close_time": "12:00"}
        )
        flagged = response.json()["flagged_appointments"]
        self.assertEqual(len(flagged), 1)
        self.assertTrue(flagged[0]["needs_review"])

        review = self.client.get(f"{self.dashboard}/appointments", params={"needs_review": "true"}).json()
        self.assertEqual(review["total_appointments"], 1)

        cleared = self.client.post(f"{self.dashboard}/appointments/{flagged[0]['id']}/clear-review")
        self.assertFalse(cleared.json()["needs_review"])


class TestSuggestionEndpoints(ApiTestCase):

    def test_generate_list_and_accept(self):
        generated = self.client.post(
            f"{self.dashboard}/scheduling-suggestions/generate", json={"type": "optimal-slots"}
        )
        self.assertEqual(generated.status_code, 201)
        self.assertEqual(generated.json()["generated"], 0)

        self.open_monday()
        self.book(url=self.dashboard)
        generated = self.client.post(
            f"{self.dashboard}/scheduling-suggestions/generate", json={"type": "busy-hours"}
        ).json()
        self.assertEqual(generated["generated"], 1)

        listing = self.client.get(
            f"{self.dashboard}/scheduling-suggestions", params={"type": "optimal-slots"}
        ).json()
        suggestion_id = listing["suggestions"][0]["id"]

        accepted = self.client.post(
            f"{self.dashboard}/scheduling-suggestions/{suggestion_id}/accept", json={"accepted": True}
        )
        self.assertTrue(accepted.json()["is_accepted"])

    def test_pricing_requires_service(self):
        response = self.client.post(
            f"{self.dashboard}/scheduling-suggestions/generate", json={"type": "pricing"}
        )
        self.assertEqual(response.status_code, 400)

    def test_client_insights(self):
        self.open_monday()
        self.book(url=self.dashboard)

        recomputed = self.client.post(
            f"{self.dashboard}/client-insights/recompute", json={"email": "maya@example.com"}
        ).json()
        self.assertEqual(
            {i["type"] for i in recomputed["insights"]},
            {"loyalty", "preferences", "lifetime_value"}
        )

        current = self.client.get(f"{self.dashboard}/client-insights", params={"email": "MAYA@example.com"})
        self.assertEqual(len(current.json()["insights"]), 3)


class TestHealth(ApiTestCase):

    def test_basic_health(self):
        response = TestClient(app).get("/health/")
        self.assertEqual(response.json()["status"], "healthy")
        self.assertIn("X-Correlation-ID", response.headers)


if __name__ == "__main__":
    unittest.main()
