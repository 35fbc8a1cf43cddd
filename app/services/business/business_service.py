# app/services/business/business_service.py
"""Service for looking up and registering businesses"""
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import NotFoundError
from app.models.business import Business
from app.models.service import Service

logger = logging.getLogger(__name__)


class BusinessService:
    """Handles business-related operations"""

    @staticmethod
    def get_business(db: Session, business_id: UUID) -> Business:
        """Get an active business or raise NotFoundError"""
        business = db.query(Business).filter(
            Business.id == business_id,
            Business.is_active == True  # noqa: E712
        ).first()
        if not business:
            raise NotFoundError(f"Business {business_id} not found")
        return business

    @staticmethod
    def create_business(
            db: Session,
            name: str,
            business_type: Optional[str] = None,
            timezone: str = "UTC"
    ) -> Business:
        business = Business(name=name, business_type=business_type, timezone=timezone)
        db.add(business)
        db.commit()
        db.refresh(business)
        logger.info(f"Registered business {business.id}: {business.name}")
        return business

    @staticmethod
    def get_service(db: Session, business_id: UUID, service_id: UUID) -> Service:
        """Get a service of this business or raise NotFoundError"""
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id
        ).first()
        if not service:
            raise NotFoundError(f"Service {service_id} not found for business {business_id}")
        return service
