# app/schemas/__init__.py
from .scheduling import (
    DayAvailabilityRequest,
    AppointmentCreateRequest,
    ApproveRequest,
    DeclineRequest,
    CancelRequest,
    SuggestionGenerateRequest,
    SuggestionAcceptRequest,
    ClientInsightRecomputeRequest
)
