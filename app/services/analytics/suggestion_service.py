# app/services/analytics/suggestion_service.py
"""Persists scheduling suggestions and client insights derived from appointment history"""
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.appointment import Appointment
from app.models.client_insight import ClientInsight, InsightType
from app.models.scheduling_suggestion import SchedulingSuggestion, SuggestionType
from app.models.service import Service
from app.services.analytics import scheduling_analytics as analytics

logger = logging.getLogger(__name__)

PRICING_PRIORITY = 4
BUSY_HOURS_PRIORITY = 3
OPTIMAL_SLOTS_PRIORITY = 2

# Open hours listed in an optimal-slot suggestion
OPTIMAL_SLOTS_SHOWN = 3


def _clamp_priority(value: int) -> int:
    return max(1, min(5, value))


def parse_suggestion_type(value: Optional[str]) -> Optional[SuggestionType]:
    if value is None:
        return None
    try:
        return SuggestionType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in SuggestionType)
        raise ValidationError(f"Unknown suggestion type '{value}' (expected one of: {allowed})")


class SuggestionService:

    @staticmethod
    def _history(db: Session, business_id: UUID, **filters) -> List[Appointment]:
        query = db.query(Appointment).filter(Appointment.business_id == business_id)
        for column, value in filters.items():
            query = query.filter(getattr(Appointment, column) == value)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc()).all()

    @staticmethod
    def _save(db: Session, suggestions: List[SchedulingSuggestion]) -> List[SchedulingSuggestion]:
        if not suggestions:
            return []
        db.add_all(suggestions)
        db.commit()
        for suggestion in suggestions:
            db.refresh(suggestion)
        return suggestions

    @staticmethod
    def generate_rebooking_suggestions(db: Session, business_id: UUID) -> List[SchedulingSuggestion]:
        """One rebooking suggestion per client with at least two visits"""
        by_client: Dict[str, List[Appointment]] = defaultdict(list)
        for appointment in SuggestionService._history(db, business_id):
            by_client[appointment.client_email].append(appointment)

        suggestions = []
        for client_email, history in by_client.items():
            prediction = analytics.predict_rebooking_interval(history)
            if prediction is None:
                continue

            client_name = history[-1].client_name
            suggestions.append(SchedulingSuggestion(
                business_id=business_id,
                suggestion_type=SuggestionType.REBOOKING.value,
                suggestion=(
                    f"Remind {client_name} to rebook around "
                    f"{prediction.next_visit.strftime('%B %d, %Y')} "
                    f"(visits about every {prediction.average_days} days)"
                ),
                reasoning=(
                    f"{prediction.visit_count} visits with "
                    f"{prediction.consistency:.0%} interval consistency"
                ),
                priority=_clamp_priority(prediction.confidence),
                client_email=client_email,
            ))

        logger.info(f"Generated {len(suggestions)} rebooking suggestion(s) for business {business_id}")
        return SuggestionService._save(db, suggestions)

    @staticmethod
    def generate_pricing_suggestions(
            db: Session,
            business_id: UUID,
            service_id: UUID
    ) -> List[SchedulingSuggestion]:
        """Suggest peak-hour premium pricing for a service with concentrated demand"""
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id
        ).first()
        if service is None:
            raise NotFoundError(f"Service {service_id} not found for business {business_id}")

        demand = analytics.analyze_demand(SuggestionService._history(db, business_id, service_id=service_id))
        if demand is None or not demand.high_demand_hours:
            return []

        hours = ", ".join(analytics.format_hour(h) for h in demand.high_demand_hours)
        suggestion = SchedulingSuggestion(
            business_id=business_id,
            suggestion_type=SuggestionType.PRICING.value,
            suggestion=(
                f"Consider {analytics.PEAK_PRICING_PREMIUM_PERCENT}% premium pricing for "
                f"{service.name} during peak hours: {hours}"
            ),
            reasoning=f"{demand.total_bookings} bookings show consistent high demand",
            priority=PRICING_PRIORITY,
            service_id=service_id,
        )
        return SuggestionService._save(db, [suggestion])

    @staticmethod
    def generate_busy_hour_suggestions(
            db: Session,
            business_id: UUID,
            target_date: Optional[date] = None
    ) -> List[SchedulingSuggestion]:
        """Peak-hour and open-slot suggestions, for one date or the whole history"""
        filters = {"appointment_date": target_date} if target_date else {}
        history = SuggestionService._history(db, business_id, **filters)
        if not analytics.counted(history):
            return []

        scope = f"on {target_date.isoformat()}" if target_date else "across all bookings"
        suggestions = []

        busy_hours = analytics.analyze_busy_hours(history)
        if busy_hours:
            suggestions.append(SchedulingSuggestion(
                business_id=business_id,
                suggestion_type=SuggestionType.BUSY_HOURS.value,
                suggestion=(
                    f"Peak hours: {', '.join(analytics.format_hour(h) for h in busy_hours)} "
                    f"- consider premium pricing or extra staff"
                ),
                reasoning=(
                    f"Bookings in these hours exceed {analytics.BUSY_HOUR_THRESHOLD}x "
                    f"the hourly average {scope}"
                ),
                priority=BUSY_HOURS_PRIORITY,
            ))

        optimal = analytics.find_optimal_hours(history)
        if optimal:
            shown = ", ".join(analytics.format_hour(h) for h in optimal[:OPTIMAL_SLOTS_SHOWN])
            suggestions.append(SchedulingSuggestion(
                business_id=business_id,
                suggestion_type=SuggestionType.OPTIMAL_SLOTS.value,
                suggestion=f"Best availability: {shown} - based on booking patterns",
                reasoning=(
                    f"No bookings within {analytics.OPTIMAL_SLOT_BUFFER_HOURS} hour(s) "
                    f"of these times {scope}"
                ),
                priority=OPTIMAL_SLOTS_PRIORITY,
            ))

        return SuggestionService._save(db, suggestions)

    @staticmethod
    def list_suggestions(
            db: Session,
            business_id: UUID,
            suggestion_type: Optional[str] = None
    ) -> List[SchedulingSuggestion]:
        parsed = parse_suggestion_type(suggestion_type)
        query = db.query(SchedulingSuggestion).filter(SchedulingSuggestion.business_id == business_id)
        if parsed is not None:
            query = query.filter(SchedulingSuggestion.suggestion_type == parsed.value)
        return query.order_by(
            SchedulingSuggestion.priority.desc(),
            SchedulingSuggestion.created_at.desc()
        ).all()

    @staticmethod
    def set_acceptance(
            db: Session,
            business_id: UUID,
            suggestion_id: UUID,
            accepted: bool
    ) -> SchedulingSuggestion:
        """The only mutation a suggestion allows"""
        suggestion = db.query(SchedulingSuggestion).filter(
            SchedulingSuggestion.id == suggestion_id,
            SchedulingSuggestion.business_id == business_id
        ).first()
        if suggestion is None:
            raise NotFoundError(f"Scheduling suggestion {suggestion_id} not found")

        suggestion.is_accepted = accepted
        db.commit()
        db.refresh(suggestion)
        return suggestion

    # ------------------------------------------------------------------
    # Client insights
    # ------------------------------------------------------------------

    @staticmethod
    def compute_client_insights(
            db: Session,
            business_id: UUID,
            client_email: str,
            today: Optional[date] = None
    ) -> List[ClientInsight]:
        """Recompute a client's insights; earlier rows are kept but no longer current"""
        client_email = client_email.strip().lower()
        history = analytics.counted(SuggestionService._history(db, business_id, client_email=client_email))

        db.query(ClientInsight).filter(
            ClientInsight.business_id == business_id,
            ClientInsight.client_email == client_email,
            ClientInsight.is_current == True  # noqa: E712
        ).update({ClientInsight.is_current: False}, synchronize_session=False)

        if not history:
            db.commit()
            return []

        today = today or date.today()
        history_confidence = _clamp_priority(len(history))
        service_ids = {a.service_id for a in history if a.service_id is not None}
        prices = {
            str(s.id): float(s.price)
            for s in db.query(Service).filter(Service.id.in_(service_ids)).all()
            if s.price is not None
        } if service_ids else {}

        insights = [
            ClientInsight(
                business_id=business_id,
                client_email=client_email,
                insight_type=InsightType.LOYALTY.value,
                data=analytics.loyalty_score(history, today),
                confidence=history_confidence,
            ),
            ClientInsight(
                business_id=business_id,
                client_email=client_email,
                insight_type=InsightType.PREFERENCES.value,
                data=analytics.service_preferences(history),
                confidence=history_confidence,
            ),
            ClientInsight(
                business_id=business_id,
                client_email=client_email,
                insight_type=InsightType.LIFETIME_VALUE.value,
                data=analytics.lifetime_value(history, prices),
                confidence=history_confidence,
            ),
        ]

        prediction = analytics.predict_rebooking_interval(history)
        if prediction is not None:
            insights.append(ClientInsight(
                business_id=business_id,
                client_email=client_email,
                insight_type=InsightType.REBOOKING.value,
                data={
                    "average_days": prediction.average_days,
                    "consistency": round(prediction.consistency, 3),
                    "next_visit": prediction.next_visit.isoformat(),
                    "visit_count": prediction.visit_count,
                },
                confidence=_clamp_priority(prediction.confidence),
            ))

        db.add_all(insights)
        db.commit()
        for insight in insights:
            db.refresh(insight)

        logger.info(f"Computed {len(insights)} insight(s) for {client_email} at business {business_id}")
        return insights

    @staticmethod
    def list_client_insights(db: Session, business_id: UUID, client_email: str) -> List[ClientInsight]:
        return db.query(ClientInsight).filter(
            ClientInsight.business_id == business_id,
            ClientInsight.client_email == client_email.strip().lower(),
            ClientInsight.is_current == True  # noqa: E712
        ).order_by(ClientInsight.insight_type.asc()).all()
