"""Pytest configuration and shared ledger fixtures."""

import os
from datetime import date
from decimal import Decimal

# Set test database URL BEFORE any imports from rentledger
# This ensures the SessionLocal and engine never touch a developer database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from rentledger.models import Base, Contract, ContractStatus, Owner, OwnershipShare, Property  # noqa: E402
from rentledger.services.config import reset_settings  # noqa: E402
from rentledger.services.split_service import compute_item_b  # noqa: E402

TENANT_ID = 1
OTHER_TENANT_ID = 2


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings for every test so monkeypatched env vars apply."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def tenant_id():
    return TENANT_ID


@pytest.fixture
def owners(db_session):
    """Two owners of the same tenant."""
    alice = Owner(tenant_id=TENANT_ID, full_name="Alice Owner", email="alice@example.com")
    bob = Owner(tenant_id=TENANT_ID, full_name="Bob Owner", email="bob@example.com")
    db_session.add_all([alice, bob])
    db_session.commit()
    return [alice, bob]


@pytest.fixture
def property_with_shares(db_session, owners):
    """Property held 60/40 by the two owners since 2024."""
    prop = Property(tenant_id=TENANT_ID, name="Calle Falsa 123", address="Calle Falsa 123, CABA")
    db_session.add(prop)
    db_session.flush()
    db_session.add_all(
        [
            OwnershipShare(
                tenant_id=TENANT_ID,
                owner_id=owners[0].id,
                property_id=prop.id,
                share_percentage=Decimal("60"),
                start_date=date(2024, 1, 1),
            ),
            OwnershipShare(
                tenant_id=TENANT_ID,
                owner_id=owners[1].id,
                property_id=prop.id,
                share_percentage=Decimal("40"),
                start_date=date(2024, 1, 1),
            ),
        ]
    )
    db_session.commit()
    return prop


@pytest.fixture
def make_contract(db_session, property_with_shares):
    """Factory for contracts on the shared property (draft unless status is given)."""

    def _make(
        monthly_rent="1000.00",
        item_a="700.00",
        currency="ARS",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        status=ContractStatus.DRAFT,
    ):
        contract = Contract(
            tenant_id=TENANT_ID,
            property_id=property_with_shares.id,
            monthly_rent=Decimal(monthly_rent),
            currency=currency,
            item_a=Decimal(item_a),
            item_b=compute_item_b(Decimal(monthly_rent), Decimal(item_a)),
            start_date=start_date,
            end_date=end_date,
            status=status.value,
            renter_name="Carla Renter",
            renter_email="carla@example.com",
        )
        db_session.add(contract)
        db_session.commit()
        return contract

    return _make


class RecordingSender:
    """Notification sender that keeps every dispatched event."""

    def __init__(self):
        self.sent = []

    def send(self, event, payload):
        self.sent.append((event, payload))


class FailingSender:
    """Notification sender whose delivery always fails."""

    def send(self, event, payload):
        raise ConnectionError("smtp unreachable")


@pytest.fixture
def recording_sender():
    return RecordingSender()


@pytest.fixture
def failing_sender():
    return FailingSender()
