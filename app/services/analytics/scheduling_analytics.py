# app/services/analytics/scheduling_analytics.py
"""
Read-only analytics over appointment history.

Every function here is pure: it takes appointments (ORM rows or any object
with the same attributes) and returns plain data. Too little history is not
an error; functions return an empty result or ``None`` instead.
"""
import math
import statistics
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from app.models.appointment import AppointmentStatus

# An hour is "busy" when its bookings exceed this multiple of the mean hourly count
BUSY_HOUR_THRESHOLD = 1.5

# An hour is in "high demand" for pricing purposes above this multiple of the mean
HIGH_DEMAND_THRESHOLD = 1.3

# Consistency (0..1) is scaled onto confidence 0..5
CONFIDENCE_SCALE = 5

# Hours considered for open-slot suggestions: 9:00 up to the 18:00 hour
BUSINESS_OPEN_HOUR = 9
BUSINESS_CLOSE_HOUR = 19

# Neighbouring hours that must also be free for an hour to be suggested
OPTIMAL_SLOT_BUFFER_HOURS = 1

PEAK_PRICING_PREMIUM_PERCENT = 20

# Declined and cancelled bookings never happened and carry no demand signal
COUNTED_STATUSES = frozenset({
    AppointmentStatus.PENDING.value,
    AppointmentStatus.APPROVED.value,
    AppointmentStatus.COMPLETED.value,
})


@dataclass(frozen=True)
class RebookingPrediction:
    average_days: int
    consistency: float
    confidence: int
    visit_count: int
    last_visit: date

    @property
    def next_visit(self) -> date:
        return self.last_visit + timedelta(days=self.average_days)


@dataclass(frozen=True)
class DemandAnalysis:
    total_bookings: int
    high_demand_hours: List[int]
    average_demand: int


def format_hour(hour: int) -> str:
    return f"{hour}:00"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def counted(appointments: Iterable) -> List:
    return [a for a in appointments if a.status in COUNTED_STATUSES]


def hour_histogram(appointments: Iterable) -> Dict[int, int]:
    """Bookings per hour-of-day of their start time"""
    return dict(Counter(a.start_time.hour for a in counted(appointments)))


def _hours_above(histogram: Dict[int, int], threshold: float) -> List[int]:
    if not histogram:
        return []
    mean = sum(histogram.values()) / len(histogram)
    return sorted(hour for hour, count in histogram.items() if count > mean * threshold)


def analyze_busy_hours(appointments: Iterable) -> List[int]:
    """Hours whose booking count exceeds 1.5x the mean; nothing when fewer than two hours are used"""
    histogram = hour_histogram(appointments)
    if len(histogram) <= 1:
        return []
    return _hours_above(histogram, BUSY_HOUR_THRESHOLD)


def find_optimal_hours(appointments: Iterable) -> List[int]:
    """Business hours with no booking in the hour itself or the adjacent buffer hours"""
    booked = set(hour_histogram(appointments))
    optimal = []
    for hour in range(BUSINESS_OPEN_HOUR, BUSINESS_CLOSE_HOUR):
        window = range(hour - OPTIMAL_SLOT_BUFFER_HOURS, hour + OPTIMAL_SLOT_BUFFER_HOURS + 1)
        if not any(h in booked for h in window):
            optimal.append(hour)
    return optimal


def calculate_consistency(gaps: Sequence[float]) -> float:
    """1 - stddev/mean of the gaps, floored at 0; needs at least two gaps and a positive mean"""
    if len(gaps) <= 1:
        return 0.0
    mean = statistics.fmean(gaps)
    if mean <= 0:
        return 0.0
    return max(0.0, 1 - statistics.pstdev(gaps) / mean)


def visit_gaps(visit_dates: Iterable[date]) -> List[int]:
    ordered = sorted(visit_dates)
    return [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]


def predict_rebooking_interval(appointments: Iterable) -> Optional[RebookingPrediction]:
    """Average days between a client's visits and how regular they are; None below two visits"""
    history = counted(appointments)
    if len(history) < 2:
        return None

    visit_dates = sorted(a.appointment_date for a in history)
    gaps = visit_gaps(visit_dates)
    consistency = calculate_consistency(gaps)

    return RebookingPrediction(
        average_days=round_half_up(statistics.fmean(gaps)),
        consistency=consistency,
        confidence=min(CONFIDENCE_SCALE, math.floor(consistency * CONFIDENCE_SCALE)),
        visit_count=len(history),
        last_visit=visit_dates[-1],
    )


def analyze_demand(appointments: Iterable) -> Optional[DemandAnalysis]:
    """High-demand hours (above 1.3x the mean) for one service; None without history"""
    history = counted(appointments)
    if not history:
        return None

    histogram = hour_histogram(history)
    mean = sum(histogram.values()) / len(histogram)
    return DemandAnalysis(
        total_bookings=len(history),
        high_demand_hours=_hours_above(histogram, HIGH_DEMAND_THRESHOLD),
        average_demand=round_half_up(mean),
    )


# ----------------------------------------------------------------------------
# Client insights
# ----------------------------------------------------------------------------

# Visits per year that count as full frequency
LOYALTY_FULL_FREQUENCY_VISITS = 12
LOYALTY_WEIGHTS = {"frequency": 0.4, "recency": 0.3, "consistency": 0.3}
LOYALTY_LEVELS = ((80, "VIP"), (60, "Loyal"), (40, "Regular"))

# Value assumed for a visit whose service has no price
DEFAULT_VISIT_VALUE = 75
VALUE_SEGMENTS = ((1000, "High Value"), (500, "Medium Value"))


def recency_score(visit_dates: Sequence[date], today: date) -> float:
    """1.0 for a visit today, decaying linearly to 0 after a year"""
    if not visit_dates:
        return 0.0
    days_since = max(0, (today - max(visit_dates)).days)  # upcoming bookings count as today
    return max(0.0, 1 - days_since / 365)


def loyalty_score(appointments: Iterable, today: date) -> Dict[str, float]:
    history = counted(appointments)
    visit_dates = [a.appointment_date for a in history]
    factors = {
        "frequency": min(len(history) / LOYALTY_FULL_FREQUENCY_VISITS, 1.0),
        "recency": recency_score(visit_dates, today),
        "consistency": calculate_consistency(visit_gaps(visit_dates)),
    }
    score = round_half_up(sum(factors[name] * weight for name, weight in LOYALTY_WEIGHTS.items()) * 100)
    return {"score": score, "level": loyalty_level(score), **factors}


def loyalty_level(score: int) -> str:
    for floor, level in LOYALTY_LEVELS:
        if score >= floor:
            return level
    return "New"


def service_preferences(appointments: Iterable) -> Dict:
    counts = Counter(str(a.service_id) for a in counted(appointments) if a.service_id is not None)
    favourite = counts.most_common(1)[0][0] if counts else None
    return {
        "favorite_service_id": favourite,
        "service_frequency": dict(counts),
        "total_services": len(counts),
    }


def lifetime_value(appointments: Iterable, service_prices: Dict[str, float]) -> Dict:
    total = 0.0
    for appointment in counted(appointments):
        price = service_prices.get(str(appointment.service_id)) if appointment.service_id else None
        total += price if price is not None else DEFAULT_VISIT_VALUE
    return {"value": round(total, 2), "segment": value_segment(total)}


def value_segment(value: float) -> str:
    for floor, segment in VALUE_SEGMENTS:
        if value >= floor:
            return segment
    return "Growing"
