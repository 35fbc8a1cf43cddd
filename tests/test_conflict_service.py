"""
Tests for services/appointment/conflict_service.py

Availability marking, booking validation and the one-winner guarantee.
"""
import threading
import unittest
import uuid
from datetime import time, timedelta

from app.core.exceptions import SlotConflict, ValidationError
from app.core.weekdays import Weekday
from app.models.appointment import Appointment, AppointmentStatus
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.booking_lock import BUSINESS_WIDE, BookingLockRegistry, scope_key
from app.services.appointment.conflict_service import AppointmentDraft, ConflictArbiter
from app.services.availability.availability_service import AvailabilityService
from tests.support import TODAY, DatabaseTestCase


def draft(name="Sam Ortiz", email="Sam@Example.com", **kwargs):
    return AppointmentDraft(client_name=name, client_email=email, **kwargs)


class TestComputeAvailableSlots(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.open_day(Weekday.MONDAY)

    def reserve(self, start, end=None, resource_id=None, **kwargs):
        return ConflictArbiter.reserve_slot(
            self.db, self.business.id, TODAY, start, kwargs.pop("draft", draft()),
            end_time=end, resource_id=resource_id, today=TODAY, **kwargs
        )

    def test_all_slots_free_without_bookings(self):
        slots = ConflictArbiter.compute_available_slots(self.db, self.business.id, TODAY)

        self.assertEqual(len(slots), 16)
        self.assertTrue(all(s.available for s in slots))

    def test_booked_interval_marks_intersecting_slots(self):
        self.reserve(time(10), time(11))

        slots = ConflictArbiter.compute_available_slots(self.db, self.business.id, TODAY)
        taken = [s.start_time for s in slots if not s.available]
        self.assertEqual(taken, [time(10), time(10, 30)])

    def test_touching_intervals_do_not_conflict(self):
        self.reserve(time(10), time(10, 30))
        second = self.reserve(time(10, 30), time(11))
        self.assertEqual(second.start_time, time(10, 30))

    def test_terminal_appointments_free_their_slot(self):
        appointment = self.reserve(time(10), time(10, 30))
        AppointmentService.decline(self.db, self.business.id, appointment.id, reason="Double booked")

        slots = ConflictArbiter.compute_available_slots(self.db, self.business.id, TODAY)
        self.assertTrue(all(s.available for s in slots))
        self.reserve(time(10), time(10, 30))

    def test_closed_day_has_no_slots(self):
        tuesday = TODAY + timedelta(days=1)
        self.assertEqual(ConflictArbiter.compute_available_slots(self.db, self.business.id, tuesday), [])

    def test_resources_are_scheduled_independently(self):
        chair_a, chair_b = uuid.uuid4(), uuid.uuid4()
        self.reserve(time(10), time(10, 30), resource_id=chair_a)

        self.reserve(time(10), time(10, 30), resource_id=chair_b)
        self.reserve(time(10), time(10, 30))

        slots_a = ConflictArbiter.compute_available_slots(self.db, self.business.id, TODAY, resource_id=chair_a)
        slots_c = ConflictArbiter.compute_available_slots(self.db, self.business.id, TODAY, resource_id=uuid.uuid4())
        self.assertFalse(next(s for s in slots_a if s.start_time == time(10)).available)
        self.assertTrue(all(s.available for s in slots_c))
        with self.assertRaises(SlotConflict):
            self.reserve(time(10, 15), time(10, 45), resource_id=chair_a)


class TestReserveSlot(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.open_day(Weekday.MONDAY)

    def reserve(self, start, end=None, booking_date=TODAY, **kwargs):
        return ConflictArbiter.reserve_slot(
            self.db, self.business.id, booking_date, start, kwargs.pop("draft", draft()),
            end_time=end, today=TODAY, **kwargs
        )

    def test_direct_booking_is_pending(self):
        appointment = self.reserve(time(9), time(9, 30))

        self.assertEqual(appointment.status, AppointmentStatus.PENDING.value)
        self.assertTrue(appointment.is_direct_booking)
        self.assertIsNone(appointment.approved_at)
        self.assertEqual(appointment.client_email, "sam@example.com")

    def test_staff_booking_is_approved(self):
        appointment = self.reserve(time(9), time(9, 30), draft=draft(is_direct_booking=False))

        self.assertEqual(appointment.status, AppointmentStatus.APPROVED.value)
        self.assertIsNotNone(appointment.approved_at)

    def test_overlap_raises_slot_conflict(self):
        self.reserve(time(9), time(10))
        with self.assertRaises(SlotConflict):
            self.reserve(time(9, 30), time(10, 30))

        count = self.db.query(Appointment).count()
        self.assertEqual(count, 1)

    def test_past_date_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.reserve(time(9), time(9, 30), booking_date=TODAY - timedelta(days=1))

    def test_outside_configured_hours_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.reserve(time(8, 30), time(9))
        with self.assertRaises(ValidationError):
            self.reserve(time(16, 45), time(17, 15))

    def test_closed_configured_day_is_rejected(self):
        self.open_day(Weekday.TUESDAY)
        AvailabilityService.set_day_template(
            self.db, self.business.id, Weekday.TUESDAY, is_open=False, today=TODAY
        )
        with self.assertRaises(ValidationError):
            self.reserve(time(10), time(10, 30), booking_date=TODAY + timedelta(days=1))

    def test_unconfigured_day_uses_fallback_hours(self):
        wednesday = TODAY + timedelta(days=2)

        appointment = self.reserve(time(18), time(19), booking_date=wednesday)
        self.assertEqual(appointment.end_time, time(19))
        with self.assertRaises(ValidationError):
            self.reserve(time(18, 30), time(19, 30), booking_date=wednesday)
        with self.assertRaises(ValidationError):
            self.reserve(time(8), time(8, 30), booking_date=wednesday)

    def test_end_time_derived_from_service_duration(self):
        service = self.add_service(duration=45)
        appointment = self.reserve(time(9), draft=draft(service_id=service.id))
        self.assertEqual(appointment.end_time, time(9, 45))

    def test_end_time_defaults_to_slot_length(self):
        appointment = self.reserve(time(11))
        self.assertEqual(appointment.end_time, time(11, 30))

    def test_unknown_service_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.reserve(time(9), draft=draft(service_id=uuid.uuid4()))

    def test_missing_client_details_are_rejected(self):
        with self.assertRaises(ValidationError):
            self.reserve(time(9), time(9, 30), draft=draft(name="  "))
        with self.assertRaises(ValidationError):
            self.reserve(time(9), time(9, 30), draft=draft(email=""))

    def test_inverted_interval_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.reserve(time(10), time(9, 30))


class TestConcurrentReservations(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.open_day(Weekday.MONDAY)

    def test_exactly_one_of_two_racing_requests_wins(self):
        business_id = self.business.id
        barrier = threading.Barrier(2)
        outcomes = []
        outcomes_lock = threading.Lock()

        def attempt(client_name):
            session = self.Session()
            try:
                barrier.wait()
                ConflictArbiter.reserve_slot(
                    session, business_id, TODAY, time(14),
                    draft(name=client_name, email=f"{client_name.lower()}@example.com"),
                    end_time=time(14, 30), today=TODAY
                )
                result = "booked"
            except SlotConflict:
                result = "conflict"
            finally:
                session.close()
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(name,)) for name in ("Ana", "Ben")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["booked", "conflict"])
        active = self.db.query(Appointment).filter(
            Appointment.appointment_date == TODAY,
            Appointment.start_time == time(14)
        ).count()
        self.assertEqual(active, 1)

    def test_idle_scopes_are_dropped_from_registry(self):
        registry = BookingLockRegistry()
        mondays = [TODAY + timedelta(weeks=n) for n in range(5)]

        for booking_date in mondays:
            ConflictArbiter.reserve_slot(
                self.db, self.business.id, booking_date, time(9), draft(),
                end_time=time(9, 30), today=TODAY, locks=registry
            )
        with self.assertRaises(SlotConflict):
            ConflictArbiter.reserve_slot(
                self.db, self.business.id, TODAY, time(9), draft(),
                end_time=time(9, 30), today=TODAY, locks=registry
            )

        self.assertEqual(len(registry), 0)

    def test_scope_key_separates_resources(self):
        resource = uuid.uuid4()
        self.assertEqual(scope_key(self.business.id, TODAY, None)[2], BUSINESS_WIDE)
        self.assertNotEqual(
            scope_key(self.business.id, TODAY, None),
            scope_key(self.business.id, TODAY, resource)
        )


if __name__ == "__main__":
    unittest.main()
