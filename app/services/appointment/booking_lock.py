# app/services/appointment/booking_lock.py
"""
Mutual exclusion for the check-then-insert of a booking.

The scope is (business, date, resource). Inside one process a
``threading.Lock`` per scope serializes requests; on PostgreSQL a
transaction-level advisory lock additionally serializes separate worker
processes until the booking transaction commits or rolls back.
"""
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

BUSINESS_WIDE = "*"

ScopeKey = Tuple[str, str, str]


def scope_key(business_id: UUID, booking_date: date, resource_id: Optional[UUID]) -> ScopeKey:
    return (
        str(business_id),
        booking_date.isoformat(),
        str(resource_id) if resource_id else BUSINESS_WIDE,
    )


class BookingLockRegistry:
    """Per-scope locks, reference-counted so idle scopes are dropped"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[ScopeKey, threading.Lock] = {}
        self._holders: Dict[ScopeKey, int] = {}

    def __len__(self):
        with self._guard:
            return len(self._locks)

    def _acquire_ref(self, key: ScopeKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._holders[key] = self._holders.get(key, 0) + 1
            return lock

    def _release_ref(self, key: ScopeKey) -> None:
        with self._guard:
            remaining = self._holders[key] - 1
            if remaining:
                self._holders[key] = remaining
            else:
                del self._holders[key]
                del self._locks[key]

    @contextmanager
    def hold(
            self,
            db: Session,
            business_id: UUID,
            booking_date: date,
            resource_id: Optional[UUID] = None
    ):
        """Hold the scope for the duration of the block; the caller commits inside it"""
        key = scope_key(business_id, booking_date, resource_id)
        lock = self._acquire_ref(key)
        try:
            with lock:
                if db.get_bind().dialect.name == "postgresql":
                    db.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:scope))"),
                        {"scope": "|".join(key)}
                    )
                logger.debug(f"Booking scope {key} acquired")
                yield
        finally:
            self._release_ref(key)


booking_locks = BookingLockRegistry()
