# app/services/availability/template_cache.py
"""Redis read-through cache for weekly availability templates"""
import json
import logging
from typing import List, Optional
from uuid import UUID

import redis

from app.config.redis import RedisKeys
from app.config.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class TemplateCache:
    """
    Caches the serialized seven-day week per business.

    Redis is an optimisation only: every failure is logged and reported as a
    cache miss so callers fall back to the database.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: Optional[int] = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or settings.AVAILABILITY_CACHE_TTL

    @staticmethod
    def _key(business_id: UUID) -> str:
        return RedisKeys.BUSINESS_HOURS.format(business_id=business_id)

    def get_week(self, business_id: UUID) -> Optional[List[dict]]:
        try:
            raw = self.client.get(self._key(business_id))
        except redis.RedisError as e:
            logger.warning(f"Availability cache read failed for business {business_id}: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set_week(self, business_id: UUID, week: List[dict]) -> None:
        try:
            self.client.setex(self._key(business_id), self.ttl_seconds, json.dumps(week))
        except redis.RedisError as e:
            logger.warning(f"Availability cache write failed for business {business_id}: {e}")

    def invalidate(self, business_id: UUID) -> None:
        try:
            self.client.delete(self._key(business_id))
        except redis.RedisError as e:
            logger.warning(f"Availability cache invalidation failed for business {business_id}: {e}")
