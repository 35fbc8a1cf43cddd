# ===== app/services/availability/availability_service.py =====
from dataclasses import dataclass, asdict
from datetime import date, time
from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from app.config.settings import get_settings
from app.core.exceptions import ValidationError
from app.core.weekdays import ALL_WEEKDAYS, Weekday, parse_weekday, weekday_of
from app.models.appointment import ACTIVE_STATUSES, Appointment
from app.models.availability import WeeklyAvailabilityTemplate
from app.services.availability.template_cache import TemplateCache

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class DayTemplate:
    """One weekday of a business's week; ``is_configured`` is False for the implicit closed default"""
    day_of_week: int
    is_open: bool
    open_time: Optional[time]
    close_time: Optional[time]
    slot_duration_minutes: int
    is_configured: bool = True

    @property
    def weekday(self) -> Weekday:
        return Weekday(self.day_of_week)

    def contains(self, start_time: time, end_time: time) -> bool:
        """Whether [start_time, end_time) lies inside the open window"""
        if not self.is_open or self.open_time is None or self.close_time is None:
            return False
        return self.open_time <= start_time and end_time <= self.close_time

    @classmethod
    def closed(cls, day_of_week: int) -> "DayTemplate":
        return cls(
            day_of_week=int(day_of_week),
            is_open=False,
            open_time=None,
            close_time=None,
            slot_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
            is_configured=False,
        )

    @classmethod
    def from_model(cls, template: WeeklyAvailabilityTemplate) -> "DayTemplate":
        return cls(
            day_of_week=template.day_of_week,
            is_open=bool(template.is_open),
            open_time=template.open_time,
            close_time=template.close_time,
            slot_duration_minutes=template.slot_duration_minutes or settings.DEFAULT_SLOT_DURATION_MINUTES,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["open_time"] = self.open_time.strftime("%H:%M") if self.open_time else None
        data["close_time"] = self.close_time.strftime("%H:%M") if self.close_time else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DayTemplate":
        return cls(
            day_of_week=data["day_of_week"],
            is_open=data["is_open"],
            open_time=time.fromisoformat(data["open_time"]) if data.get("open_time") else None,
            close_time=time.fromisoformat(data["close_time"]) if data.get("close_time") else None,
            slot_duration_minutes=data["slot_duration_minutes"],
            is_configured=data.get("is_configured", True),
        )


class AvailabilityService:
    """Weekly availability templates per business"""

    @staticmethod
    def set_day_template(
            db: Session,
            business_id: UUID,
            day_of_week: int,
            is_open: bool,
            open_time: Optional[time] = None,
            close_time: Optional[time] = None,
            slot_duration_minutes: Optional[int] = None,
            cache: Optional[TemplateCache] = None,
            today: Optional[date] = None
    ) -> Tuple[WeeklyAvailabilityTemplate, List[Appointment]]:
        """
        Replace the template of one weekday.

        Appointments already holding time that the new window no longer covers
        are not cancelled. They are flagged ``needs_review`` for staff and
        returned alongside the template.
        """
        try:
            weekday = parse_weekday(day_of_week)
        except ValueError as e:
            raise ValidationError(str(e))

        duration = slot_duration_minutes
        if duration is None:
            duration = settings.DEFAULT_SLOT_DURATION_MINUTES
        if duration <= 0:
            raise ValidationError("slot_duration_minutes must be positive")

        if is_open:
            if open_time is None or close_time is None:
                raise ValidationError("open_time and close_time are required when the day is open")
            if open_time >= close_time:
                raise ValidationError(
                    f"open_time {open_time.strftime('%H:%M')} must be before "
                    f"close_time {close_time.strftime('%H:%M')}"
                )

        template = db.query(WeeklyAvailabilityTemplate).filter_by(
            business_id=business_id,
            day_of_week=int(weekday)
        ).first()

        if template is None:
            template = WeeklyAvailabilityTemplate(business_id=business_id, day_of_week=int(weekday))
            db.add(template)

        template.is_open = is_open
        template.open_time = open_time
        template.close_time = close_time
        template.slot_duration_minutes = duration

        flagged = AvailabilityService._flag_orphaned_appointments(
            db, business_id, DayTemplate.from_model(template), today or date.today()
        )

        if cache is not None:
            cache.invalidate(business_id)

        db.commit()
        db.refresh(template)

        if cache is not None:
            week = AvailabilityService.get_week_template(db, business_id)
            cache.set_week(business_id, [entry.to_dict() for entry in week])

        logger.info(
            f"Availability for business {business_id} on {weekday.label} set to "
            f"{'open' if is_open else 'closed'}"
            + (f" {open_time.strftime('%H:%M')}-{close_time.strftime('%H:%M')}" if is_open else "")
        )
        return template, flagged

    @staticmethod
    def get_week_template(
            db: Session,
            business_id: UUID,
            cache: Optional[TemplateCache] = None
    ) -> List[DayTemplate]:
        """All seven weekdays, Sunday first; missing records default to closed"""
        if cache is not None:
            cached = cache.get_week(business_id)
            if cached is not None:
                return [DayTemplate.from_dict(entry) for entry in cached]

        templates = db.query(WeeklyAvailabilityTemplate).filter_by(business_id=business_id).all()
        by_day = {t.day_of_week: DayTemplate.from_model(t) for t in templates}
        week = [by_day.get(int(day), DayTemplate.closed(day)) for day in ALL_WEEKDAYS]

        if cache is not None:
            cache.set_week(business_id, [entry.to_dict() for entry in week])

        return week

    @staticmethod
    def get_template_for_date(
            db: Session,
            business_id: UUID,
            target_date: date,
            cache: Optional[TemplateCache] = None
    ) -> DayTemplate:
        week = AvailabilityService.get_week_template(db, business_id, cache=cache)
        return week[int(weekday_of(target_date))]

    @staticmethod
    def _flag_orphaned_appointments(
            db: Session,
            business_id: UUID,
            day: DayTemplate,
            today: date
    ) -> List[Appointment]:
        upcoming = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.appointment_date >= today,
            Appointment.status.in_(ACTIVE_STATUSES)
        ).all()

        flagged = []
        for appointment in upcoming:
            if weekday_of(appointment.appointment_date) != day.weekday:
                continue
            if day.contains(appointment.start_time, appointment.end_time):
                continue

            appointment.needs_review = True
            if day.is_open:
                appointment.review_reason = (
                    f"Outside updated {day.weekday.label} hours "
                    f"{day.open_time.strftime('%H:%M')}-{day.close_time.strftime('%H:%M')}"
                )
            else:
                appointment.review_reason = f"{day.weekday.label} is now closed"
            flagged.append(appointment)

        if flagged:
            logger.warning(
                f"Availability change for business {business_id} on {day.weekday.label} "
                f"orphaned {len(flagged)} appointment(s); flagged for staff review"
            )
        return flagged
