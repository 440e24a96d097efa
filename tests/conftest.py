"""
Test fixtures for Fare Watch tests.
"""
import os

# Settings are read once at import time; keep tests off the network and fast
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("PRICE_CHECK_DELAY_SECONDS", "0")
os.environ.setdefault("PRICE_ALERT_POLICY", "threshold")
os.environ.setdefault("NTFY_TOPIC", "")
os.environ.setdefault("AMADEUS_CLIENT_ID", "")
os.environ.setdefault("AMADEUS_CLIENT_SECRET", "")

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.database import Base, get_db
from app.api.dependencies import get_pricing_client, get_notifier
from app.main import app
from app.models import TrackedFlight, PriceObservation, TripType, CabinClass
from app.services.amadeus_client import PriceQuote
from app.services.notification import NtfyNotifier


TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def make_quote(price, offer_id: str = "1", **kwargs) -> PriceQuote:
    return PriceQuote(
        price=Decimal(str(price)),
        currency=kwargs.pop("currency", "USD"),
        offer_id=offer_id,
        **kwargs,
    )


class FakePricingClient:
    """
    Stands in for AmadeusPricingClient.

    `quotes` maps (origin, destination) to a PriceQuote, None, or an exception
    instance to raise. Unknown routes return None.
    """

    def __init__(self, quotes: Optional[dict] = None):
        self.quotes = quotes or {}
        self.calls = []

    async def search_offer(self, origin, destination, departure_date, return_date=None,
                           adults=1, cabin_class="economy"):
        self.calls.append({
            "origin": origin,
            "destination": destination,
            "departure_date": departure_date,
            "return_date": return_date,
            "adults": adults,
            "cabin_class": cabin_class,
        })
        result = self.quotes.get((origin, destination))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    return _override_get_db


@pytest.fixture
def pricing_client():
    return FakePricingClient()


@pytest.fixture
def notifier():
    # No topic: pushes are recorded but never sent
    return NtfyNotifier(ntfy_url="http://ntfy.test", ntfy_topic="")


@pytest.fixture(scope="function")
async def client(override_get_db, pricing_client, notifier):
    """
    Async test client with the database, pricing client and notifier overridden.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pricing_client] = lambda: pricing_client
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def future_date():
    return date.today() + timedelta(days=30)


@pytest.fixture
def make_flight(db_session, future_date):
    """Insert a TrackedFlight with sensible defaults."""

    def _make_flight(**overrides) -> TrackedFlight:
        values = {
            "origin": "SFO",
            "destination": "JFK",
            "airline": "United",
            "travel_date": future_date,
            "trip_type": TripType.ONE_WAY,
            "cabin_class": CabinClass.ECONOMY,
            "num_passengers": 1,
        }
        values.update(overrides)
        flight = TrackedFlight(**values)
        db_session.add(flight)
        db_session.commit()
        db_session.refresh(flight)
        return flight

    return _make_flight


@pytest.fixture
def add_observation(db_session):
    def _add_observation(flight, price, **kwargs) -> PriceObservation:
        observation = PriceObservation(
            flight_id=flight.id,
            price=Decimal(str(price)),
            currency=kwargs.pop("currency", "USD"),
            offer_id=kwargs.pop("offer_id", "seed"),
            **kwargs,
        )
        db_session.add(observation)
        db_session.commit()
        db_session.refresh(observation)
        return observation

    return _add_observation
