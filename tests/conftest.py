"""Pytest configuration and shared fixtures."""

import os

# Set test database URL BEFORE any imports from rentledger
# This ensures the SessionLocal and engine use an in-memory database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from rentledger.models import (  # noqa: E402
    Base,
    Building,
    FinancialDocument,
    Lease,
    Property,
    PropertyChargeShare,
    WaterMeterReading,
)
from rentledger.models import Payment as PaymentRow  # noqa: E402
from rentledger.models import RentRevision as RentRevisionRow  # noqa: E402
from rentledger.services.records import (  # noqa: E402
    DocumentCategory,
    LeaseTerms,
    Payment,
    PropertyRef,
    RentRevision,
)


@pytest.fixture
def db_session():
    """Create test database session on a fresh in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def lease():
    """Lease starting 2024-01-01 at 1000 rent + 100 charges."""
    return LeaseTerms.create(
        id=1,
        property_id=10,
        start_date=date(2024, 1, 1),
        rent_amount="1000.00",
        charges_amount="100.00",
        payment_due_day=5,
    )


@pytest.fixture
def july_revision():
    """Revision effective 2024-07-01 raising rent to 1050."""
    return RentRevision.create(
        id=100,
        lease_id=1,
        effective_date=date(2024, 7, 1),
        rent_amount="1050.00",
        charges_amount="100.00",
        reason="Annual index revision",
    )


@pytest.fixture
def paid_through_july():
    """Six payments of 1100 (Jan-Jun) and one of 1150 (Jul)."""
    payments = [
        Payment.create(id=i, lease_id=1, amount="1100.00", payment_date=date(2024, i, 3))
        for i in range(1, 7)
    ]
    payments.append(Payment.create(id=7, lease_id=1, amount="1150.00", payment_date=date(2024, 7, 3)))
    return payments


@pytest.fixture
def building_properties():
    """Two properties A (1) and B (2) in building 1, and C (3) in building 2."""
    return [
        PropertyRef(id=1, building_id=1, name="A"),
        PropertyRef(id=2, building_id=1, name="B"),
        PropertyRef(id=3, building_id=2, name="C"),
    ]


@pytest.fixture
def seeded_db(db_session):
    """Building 1 with properties A/B (water 30/70 m3), one lease on A paid through July 2024."""
    db_session.add_all(
        [
            Building(id=1, name="Les Tilleuls", address="12 rue des Lilas"),
            Building(id=2, name="Le Clos"),
        ]
    )
    db_session.flush()
    db_session.add_all(
        [
            Property(id=1, name="A", building_id=1),
            Property(id=2, name="B", building_id=1),
            Property(id=3, name="C", building_id=2),
        ]
    )
    db_session.flush()
    db_session.add(
        Lease(
            id=1,
            property_id=1,
            tenant_name="Tenant A",
            start_date=date(2024, 1, 1),
            rent_amount=Decimal("1000.00"),
            charges_amount=Decimal("100.00"),
            payment_due_day=5,
        )
    )
    db_session.flush()
    db_session.add(
        RentRevisionRow(
            id=100,
            lease_id=1,
            effective_date=date(2024, 7, 1),
            rent_amount=Decimal("1050.00"),
            charges_amount=Decimal("100.00"),
            reason="Annual index revision",
        )
    )
    for month in range(1, 8):
        db_session.add(
            PaymentRow(
                id=month,
                lease_id=1,
                amount=Decimal("1150.00") if month == 7 else Decimal("1100.00"),
                payment_date=date(2024, month, 3),
            )
        )
    db_session.add_all(
        [
            FinancialDocument(
                id=1,
                building_id=1,
                category=DocumentCategory.ELECTRICITY,
                document_date=date(2024, 6, 30),
                amount=Decimal("500.00"),
                description="Electricity 2024",
            ),
            FinancialDocument(
                id=2,
                building_id=1,
                category=DocumentCategory.WATER,
                document_date=date(2024, 12, 1),
                amount=Decimal("200.00"),
                description="Water 2024",
                water_consumption=Decimal("100"),
            ),
            PropertyChargeShare(property_id=1, category=DocumentCategory.ELECTRICITY, percentage=Decimal("60")),
            PropertyChargeShare(property_id=2, category=DocumentCategory.ELECTRICITY, percentage=Decimal("40")),
            WaterMeterReading(property_id=1, reading_date=date(2023, 12, 1), meter_reading=Decimal("0")),
            WaterMeterReading(property_id=1, reading_date=date(2024, 12, 1), meter_reading=Decimal("30")),
            WaterMeterReading(property_id=2, reading_date=date(2023, 12, 1), meter_reading=Decimal("100")),
            WaterMeterReading(property_id=2, reading_date=date(2024, 12, 1), meter_reading=Decimal("170")),
        ]
    )
    db_session.commit()
    return db_session
