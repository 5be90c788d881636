from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_API_KEY"] = "test-api-key"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["BOOKING_TIMEZONE"] = "UTC"

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reservations.domain import Resource
from reservations.intervals import PricingPeriod, Window
from reservations.models import Base


def at(day: int, hour: int = 0) -> datetime:
    """UTC instant in March 2026."""
    return datetime(2026, 3, day, hour, tzinfo=timezone.utc)


def window(start_day: int, end_day: int, start_hour: int = 0, end_hour: int = 0) -> Window:
    return Window(at(start_day, start_hour), at(end_day, end_hour))


@pytest.fixture
def kayak() -> Resource:
    return Resource(id="kayak", title="Kayak", capacity=10, pricing_period=PricingPeriod.DAY)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
