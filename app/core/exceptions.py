# app/core/exceptions.py
"""Scheduling error taxonomy, mapped to HTTP responses in app.main"""


class SchedulingError(Exception):
    """Base class for errors detected by the scheduling core"""

    status_code = 400
    error_code = "scheduling_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.error_code}


class ValidationError(SchedulingError):
    """Malformed input, missing required fields, past dates, outside business hours"""

    status_code = 400
    error_code = "validation_error"


class SlotConflict(SchedulingError):
    """Requested interval is already held by a pending or approved appointment"""

    status_code = 409
    error_code = "slot_conflict"


class InvalidTransition(SchedulingError):
    """Lifecycle transition attempted from a terminal or incompatible state"""

    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, appointment_id, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} appointment {appointment_id} in status '{current_status}'"
        )
        self.appointment_id = appointment_id
        self.current_status = current_status
        self.action = action


class NotFoundError(SchedulingError):
    status_code = 404
    error_code = "not_found"


class AppointmentNotFound(NotFoundError):
    error_code = "appointment_not_found"

    def __init__(self, appointment_id):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id
