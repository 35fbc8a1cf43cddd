# app/models/__init__.py
from .base import Base
from .business import Business
from .service import Service
from .availability import WeeklyAvailabilityTemplate
from .appointment import Appointment, AppointmentStatus
from .scheduling_suggestion import SchedulingSuggestion, SuggestionType
from .client_insight import ClientInsight, InsightType

__all__ = [
    "Base",
    "Business",
    "Service",
    "WeeklyAvailabilityTemplate",
    "Appointment",
    "AppointmentStatus",
    "SchedulingSuggestion",
    "SuggestionType",
    "ClientInsight",
    "InsightType",
]
