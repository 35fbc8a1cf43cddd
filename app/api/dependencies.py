# ============================================================================
# FILE: app/api/dependencies.py
# Shared request dependencies for the scheduling API
# ============================================================================
from fastapi import Depends, Path
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.config.database import get_db
from app.config.redis import get_redis
from app.models.business import Business
from app.services.availability.template_cache import TemplateCache
from app.services.business.business_service import BusinessService
from app.services.notification.appointment_notifier import AppointmentNotifier


def get_business(
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
) -> Business:
    """Resolve the business from the path; unknown or inactive businesses are 404"""
    return BusinessService.get_business(db, business_id)


def get_template_cache() -> Optional[TemplateCache]:
    """Redis read-through cache for weekly templates"""
    return TemplateCache(get_redis())


def get_notifier(business: Business = Depends(get_business)) -> Optional[AppointmentNotifier]:
    """Email notifier scoped to the business named in the path"""
    return AppointmentNotifier(business.name)
