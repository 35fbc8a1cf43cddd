# ============================================================================
# app/api/v1/dashboard/suggestions.py
# Scheduling suggestions and client insights
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_business
from app.config.database import get_db
from app.core.exceptions import ValidationError
from app.models.business import Business
from app.models.scheduling_suggestion import SuggestionType
from app.schemas.scheduling import (
    ClientInsightRecomputeRequest,
    SuggestionAcceptRequest,
    SuggestionGenerateRequest
)
from app.services.analytics.suggestion_service import SuggestionService

router = APIRouter(prefix="/businesses/{business_id}")


@router.get("/scheduling-suggestions")
def list_suggestions(
        suggestion_type: Optional[str] = Query(
            None, alias="type", description="rebooking, pricing, busy-hours or optimal-slots"
        ),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    suggestions = SuggestionService.list_suggestions(db, business.id, suggestion_type)
    return {
        "business_id": str(business.id),
        "total": len(suggestions),
        "suggestions": [s.to_dict() for s in suggestions]
    }


@router.post("/scheduling-suggestions/generate", status_code=201)
def generate_suggestions(
        request: SuggestionGenerateRequest,
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Analyze booking history and store new suggestions of the requested type."""
    if request.type == SuggestionType.REBOOKING:
        suggestions = SuggestionService.generate_rebooking_suggestions(db, business.id)
    elif request.type == SuggestionType.PRICING:
        if request.service_id is None:
            raise ValidationError("service_id is required for pricing suggestions")
        suggestions = SuggestionService.generate_pricing_suggestions(db, business.id, request.service_id)
    else:
        # busy-hours and optimal-slots come from the same hourly analysis
        suggestions = SuggestionService.generate_busy_hour_suggestions(db, business.id, request.target_date)

    return {
        "business_id": str(business.id),
        "generated": len(suggestions),
        "suggestions": [s.to_dict() for s in suggestions]
    }


@router.post("/scheduling-suggestions/{suggestion_id}/accept")
def accept_suggestion(
        request: SuggestionAcceptRequest,
        suggestion_id: UUID = Path(..., description="The suggestion ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    suggestion = SuggestionService.set_acceptance(db, business.id, suggestion_id, request.accepted)
    return suggestion.to_dict()


@router.get("/client-insights")
def get_client_insights(
        email: str = Query(..., min_length=3, description="Client email"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    insights = SuggestionService.list_client_insights(db, business.id, email)
    return {
        "business_id": str(business.id),
        "client_email": email.strip().lower(),
        "insights": [i.to_dict() for i in insights]
    }


@router.post("/client-insights/recompute")
def recompute_client_insights(
        request: ClientInsightRecomputeRequest,
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    insights = SuggestionService.compute_client_insights(db, business.id, request.email)
    return {
        "business_id": str(business.id),
        "client_email": request.email.strip().lower(),
        "insights": [i.to_dict() for i in insights]
    }
