"""
Tests for services/analytics/scheduling_analytics.py (pure functions)
"""
import unittest
from datetime import date, time, timedelta
from types import SimpleNamespace

from app.services.analytics import scheduling_analytics as analytics

START = date(2030, 1, 7)


def visit(day_offset=0, hour=10, status="completed", service_id=None):
    return SimpleNamespace(
        appointment_date=START + timedelta(days=day_offset),
        start_time=time(hour),
        status=status,
        service_id=service_id,
    )


class TestRebookingPrediction(unittest.TestCase):

    def test_regular_client(self):
        """Visits on day 0, 30 and 62."""
        prediction = analytics.predict_rebooking_interval([visit(0), visit(30), visit(62)])

        self.assertEqual(prediction.average_days, 31)
        self.assertAlmostEqual(prediction.consistency, 1 - 1 / 31, places=6)
        self.assertEqual(prediction.confidence, 4)
        self.assertEqual(prediction.visit_count, 3)
        self.assertEqual(prediction.next_visit, START + timedelta(days=93))

    def test_visit_order_does_not_matter(self):
        shuffled = analytics.predict_rebooking_interval([visit(62), visit(0), visit(30)])
        self.assertEqual(shuffled.average_days, 31)

    def test_single_visit_is_insufficient(self):
        self.assertIsNone(analytics.predict_rebooking_interval([visit(0)]))

    def test_declined_and_cancelled_visits_are_ignored(self):
        history = [visit(0), visit(10, status="declined"), visit(20, status="cancelled"), visit(30)]
        prediction = analytics.predict_rebooking_interval(history)
        self.assertEqual(prediction.average_days, 30)
        self.assertEqual(prediction.visit_count, 2)

    def test_two_visits_have_zero_consistency(self):
        prediction = analytics.predict_rebooking_interval([visit(0), visit(14)])
        self.assertEqual(prediction.consistency, 0.0)
        self.assertEqual(prediction.confidence, 0)


class TestConsistency(unittest.TestCase):

    def test_identical_gaps_are_fully_consistent(self):
        self.assertEqual(analytics.calculate_consistency([21, 21, 21]), 1.0)

    def test_degenerate_inputs(self):
        self.assertEqual(analytics.calculate_consistency([]), 0.0)
        self.assertEqual(analytics.calculate_consistency([30]), 0.0)
        self.assertEqual(analytics.calculate_consistency([0, 0]), 0.0)

    def test_never_negative(self):
        self.assertGreaterEqual(analytics.calculate_consistency([1, 1, 1, 200]), 0.0)


class TestHourlyAnalysis(unittest.TestCase):

    def test_busy_hours_exceed_one_and_a_half_times_mean(self):
        history = [visit(hour=10)] * 4 + [visit(hour=11), visit(hour=14)]
        self.assertEqual(analytics.analyze_busy_hours(history), [10])

    def test_single_hour_has_no_busy_flags(self):
        self.assertEqual(analytics.analyze_busy_hours([visit(hour=10)] * 5), [])
        self.assertEqual(analytics.analyze_busy_hours([]), [])

    def test_optimal_hours_keep_a_free_buffer(self):
        history = [visit(hour=10), visit(hour=14)]
        self.assertEqual(analytics.find_optimal_hours(history), [12, 16, 17, 18])

    def test_optimal_hours_without_history(self):
        self.assertEqual(analytics.find_optimal_hours([]), list(range(9, 19)))

    def test_demand_analysis(self):
        history = [visit(hour=9)] * 3 + [visit(hour=10), visit(hour=11, status="declined")]
        demand = analytics.analyze_demand(history)

        self.assertEqual(demand.total_bookings, 4)
        self.assertEqual(demand.high_demand_hours, [9])
        self.assertEqual(demand.average_demand, 2)

    def test_demand_without_history(self):
        self.assertIsNone(analytics.analyze_demand([visit(status="cancelled")]))

    def test_format_and_rounding(self):
        self.assertEqual(analytics.format_hour(9), "9:00")
        self.assertEqual(analytics.round_half_up(2.5), 3)
        self.assertEqual(analytics.round_half_up(2.49), 2)


class TestClientInsights(unittest.TestCase):

    def test_regular_recent_client_is_vip(self):
        history = [visit(day_offset=30 * i) for i in range(12)]
        today = START + timedelta(days=330)

        loyalty = analytics.loyalty_score(history, today)
        self.assertEqual(loyalty["score"], 100)
        self.assertEqual(loyalty["level"], "VIP")

    def test_lapsed_single_visit_client_is_new(self):
        loyalty = analytics.loyalty_score([visit(0)], START + timedelta(days=400))
        self.assertEqual(loyalty["recency"], 0.0)
        self.assertEqual(loyalty["score"], 3)
        self.assertEqual(loyalty["level"], "New")

    def test_loyalty_levels(self):
        self.assertEqual(analytics.loyalty_level(80), "VIP")
        self.assertEqual(analytics.loyalty_level(60), "Loyal")
        self.assertEqual(analytics.loyalty_level(40), "Regular")
        self.assertEqual(analytics.loyalty_level(39), "New")

    def test_service_preferences(self):
        history = [visit(service_id="cut"), visit(service_id="cut"), visit(service_id="beard"), visit()]
        preferences = analytics.service_preferences(history)

        self.assertEqual(preferences["favorite_service_id"], "cut")
        self.assertEqual(preferences["service_frequency"], {"cut": 2, "beard": 1})
        self.assertEqual(preferences["total_services"], 2)

    def test_lifetime_value_uses_default_for_unpriced_visits(self):
        history = [visit(service_id="color")] * 3 + [visit()]
        value = analytics.lifetime_value(history, {"color": 400.0})

        self.assertEqual(value["value"], 1275.0)
        self.assertEqual(value["segment"], "High Value")
        self.assertEqual(analytics.value_segment(500), "Medium Value")
        self.assertEqual(analytics.value_segment(499.99), "Growing")


if __name__ == "__main__":
    unittest.main()
