"""Shared fixtures: in-memory SQLite store, API client and record factories."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["ALERT_SCHEDULER_ENABLED"] = "false"
os.environ["NOTIFY_ENDPOINT_URL"] = ""
os.environ["ALERT_EMAILS"] = ""
os.environ["GARAGE_EMAIL"] = ""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app import models  # noqa: F401
from app.core import redis_client
from app.core.database import Base, SessionLocal, engine
from app.core.redis_client import MemoryNotifiedStore
from app.main import app
from app.models import (
    FuelType,
    MaintenanceJob,
    MaintenanceStatus,
    MaintenanceType,
    Profile,
    Reservation,
    ReservationStatus,
    Vehicle,
)
from app.services.rules import seed_default_rules

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_default_rules(session)
    finally:
        session.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def notified_store(monkeypatch):
    """Fresh in-memory dedup store per test."""
    store = MemoryNotifiedStore()
    monkeypatch.setattr(redis_client, "_notified_store", store)
    return store


@pytest.fixture
def db(database):
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(database):
    return TestClient(app)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_profile(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "full_name": f"Driver {counter['n']}",
            "email": f"driver{counter['n']}@example.com",
        }
        fields.update(overrides)
        profile = Profile(**fields)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "brand": "Renault",
            "model": "Clio",
            "year": 2021,
            "license_plate": f"AB-{counter['n']:03d}-CD",
            "fuel_type": FuelType.GASOLINE,
            "mileage": 0,
            "created_at": NOW - timedelta(days=30),
        }
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_reservation(db):
    def _make(vehicle, user, start, end, status=ReservationStatus.PENDING, **overrides):
        reservation = Reservation(
            vehicle_id=vehicle.id,
            user_id=user.id,
            start_date=start,
            end_date=end,
            status=status,
            **overrides,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def make_job(db):
    def _make(vehicle, scheduled_date, status=MaintenanceStatus.SCHEDULED, **overrides):
        fields = {
            "vehicle_id": vehicle.id,
            "type": MaintenanceType.ROUTINE,
            "status": status,
            "scheduled_date": scheduled_date,
        }
        fields.update(overrides)
        job = MaintenanceJob(**fields)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make
