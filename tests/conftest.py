"""Shared fixtures: in-memory database, engine objects and an API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from factories import FIXED_NOW, TEST_CONFIG, TODAY, make_provider, make_service, make_user
from servio.db.base import Database
from servio.db.repositories.availability_store import AvailabilityStore
from servio.db.repositories.booking_store import BookingStore
from servio.services.booking_ledger import BookingLedger
from servio.services.booking_state_machine import BookingStateMachine
from servio.services.collaborators import CommissionSource, EarningsRecorder, Notifier, VerificationGate
from servio.services.slot_resolver import SlotResolver


@pytest.fixture
def database():
    """Fresh in-memory SQLite database per test."""
    database = Database("sqlite://", poolclass=StaticPool)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def availability_store(db):
    return AvailabilityStore(db)


@pytest.fixture
def booking_store(db):
    return BookingStore(db)


@pytest.fixture
def resolver(availability_store, booking_store):
    return SlotResolver(availability_store, booking_store, TEST_CONFIG, today=lambda: TODAY)


@pytest.fixture
def ledger(db, booking_store):
    return BookingLedger(
        db,
        booking_store,
        verification=VerificationGate(db),
        commission=CommissionSource(db, default_rate=TEST_CONFIG.default_commission_rate),
        notifier=Notifier(db),
        earnings=EarningsRecorder(db),
    )


@pytest.fixture
def machine(db, booking_store):
    return BookingStateMachine(
        db, booking_store, earnings=EarningsRecorder(db), notifier=Notifier(db), now=lambda: FIXED_NOW
    )


@pytest.fixture
def customer(db):
    return make_user(db, role="customer")


@pytest.fixture
def provider(db):
    return make_provider(db)


@pytest.fixture
def service(db, provider):
    return make_service(db, provider)


@pytest.fixture
def client(database):
    """API client on the same in-memory database, with the clock pinned to TODAY."""
    from servio.main import create_app

    app = create_app(database=database, config=TEST_CONFIG, today=lambda: TODAY)
    with TestClient(app) as test_client:
        yield test_client
