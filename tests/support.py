"""Shared fixtures for database-backed tests"""
import os
import tempfile
import unittest
from datetime import date, time

from sqlalchemy.orm import sessionmaker

from app.config.database import build_engine, create_tables
from app.models.service import Service
from app.services.availability.availability_service import AvailabilityService
from app.services.business.business_service import BusinessService

# A Monday
TODAY = date(2030, 1, 7)


class DatabaseTestCase(unittest.TestCase):
    """Fresh SQLite file per test so separate sessions (and threads) share data"""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.engine = build_engine(f"sqlite:///{os.path.join(self._tmpdir.name, 'scheduling.db')}")
        create_tables(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine)
        self.db = self.Session()
        self.business = BusinessService.create_business(self.db, "Northside Barbers", business_type="barber")

    def tearDown(self):
        self.db.close()
        self.engine.dispose()
        self._tmpdir.cleanup()

    def open_day(self, day_of_week, open_time=time(9), close_time=time(17), slot_duration_minutes=30):
        template, _ = AvailabilityService.set_day_template(
            self.db,
            self.business.id,
            day_of_week,
            is_open=True,
            open_time=open_time,
            close_time=close_time,
            slot_duration_minutes=slot_duration_minutes,
            today=TODAY
        )
        return template

    def add_service(self, name="Haircut", duration=45, price=None):
        service = Service(business_id=self.business.id, name=name, duration=duration, price=price)
        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)
        return service
