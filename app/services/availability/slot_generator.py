# app/services/availability/slot_generator.py
"""
Turns one weekday's opening hours into the concrete bookable slots of a date.

Slots are never stored. They are regenerated from the template on every
availability request, so this module must stay a pure function of its input.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from uuid import UUID

from app.config.settings import get_settings
from app.core.exceptions import ValidationError

settings = get_settings()


@dataclass(frozen=True)
class Slot:
    date: date
    start_time: time
    end_time: time
    resource_id: Optional[UUID] = None
    available: bool = True

    def overlaps(self, start_time: time, end_time: time) -> bool:
        return self.start_time < end_time and start_time < self.end_time

    def mark(self, available: bool) -> "Slot":
        return replace(self, available=available)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "resource_id": str(self.resource_id) if self.resource_id else None,
            "available": self.available,
        }


def generate_slots(
        template,
        target_date: date,
        slot_duration_minutes: Optional[int] = None,
        resource_id: Optional[UUID] = None
) -> List[Slot]:
    """
    Generate the ordered, contiguous slots for ``target_date``.

    ``template`` is any object exposing ``is_open``, ``open_time``,
    ``close_time`` and ``slot_duration_minutes`` (an ORM template or a
    ``DayTemplate``). A partial trailing slot is dropped, so a duration that
    does not divide the open window simply leaves the remainder unused.
    """
    if template is None or not template.is_open:
        return []
    if template.open_time is None or template.close_time is None:
        return []

    duration = slot_duration_minutes
    if duration is None:
        duration = getattr(template, "slot_duration_minutes", None)
    if duration is None:
        duration = settings.DEFAULT_SLOT_DURATION_MINUTES
    if duration <= 0:
        raise ValidationError(f"Slot duration must be positive, got {duration}")

    step = timedelta(minutes=duration)
    cursor = datetime.combine(target_date, template.open_time)
    day_end = datetime.combine(target_date, template.close_time)

    slots = []
    while cursor + step <= day_end:
        slot_end = cursor + step
        slots.append(Slot(
            date=target_date,
            start_time=cursor.time(),
            end_time=slot_end.time(),
            resource_id=resource_id,
        ))
        cursor = slot_end

    return slots
