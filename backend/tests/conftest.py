"""
Pytest configuration and shared fixtures
"""
import os
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from app.database import Base, get_db
from app.models import pricing  # noqa
from app.models.pricing import RateMatrixRow, RateOverrideRow, AdjustmentRuleRow
from app.main import app
from rate_engine import (
    AdjustmentType,
    InMemoryAdjustmentRuleStore,
    InMemoryOverrideStore,
    InMemoryRateMatrixStore,
    OccupancyType,
    PlanType,
    RateMatrixEntry,
    build_engine,
)

# 2025-01-02 is a Thursday
THURSDAY = date(2025, 1, 2)
FRIDAY = date(2025, 1, 3)
SATURDAY = date(2025, 1, 4)
SUNDAY = date(2025, 1, 5)
BOOKED_ON = date(2024, 12, 1)


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Database session"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client bound to the in-memory database"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== Engine fixtures ==============

@pytest.fixture
def matrix_store():
    return InMemoryRateMatrixStore()


@pytest.fixture
def override_store():
    return InMemoryOverrideStore()


@pytest.fixture
def rule_store():
    return InMemoryAdjustmentRuleStore()


@pytest.fixture
def engine(matrix_store, override_store, rule_store):
    """Pricing engine over empty in-memory stores"""
    pricing_engine = build_engine(matrix_store, override_store, rule_store, max_workers=4)
    yield pricing_engine
    pricing_engine.close()


def make_entry(entry_id=1, price="5000", start=date(2025, 1, 1), end=date(2025, 12, 31),
               property_id="P", room_category="DELUXE", plan_type=PlanType.EP,
               occupancy_type=OccupancyType.DOUBLE, currency="INR", **kwargs):
    return RateMatrixEntry(
        entry_id=entry_id,
        property_id=property_id,
        room_category=room_category,
        plan_type=plan_type,
        occupancy_type=occupancy_type,
        start_date=start,
        end_date=end,
        price=Decimal(price),
        currency=currency,
        **kwargs,
    )


@pytest.fixture
def deluxe_matrix(matrix_store):
    """DELUXE / EP / double at 5000 all of 2025"""
    return matrix_store.add(make_entry())


# ============== Database fixtures ==============

@pytest.fixture
def sample_matrix_row(db_session):
    row = RateMatrixRow(
        property_id="P",
        room_category="DELUXE",
        plan_type=PlanType.EP,
        occupancy_type=OccupancyType.DOUBLE,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        price=Decimal("5000"),
        currency="INR",
        season_label="Regular",
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def weekend_rule_row(db_session):
    row = AdjustmentRuleRow(
        property_id="P",
        name="Weekend",
        type=AdjustmentType.MULTIPLIER,
        factors={"EP": "1.2", "CP": "1.15"},
        condition={"days_of_week": [4, 5]},
        priority=10,
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def conference_override_row(db_session):
    row = RateOverrideRow(
        property_id="P",
        room_category="DELUXE",
        plan_type=PlanType.EP,
        occupancy_type=OccupancyType.DOUBLE,
        start_date=date(2025, 3, 10),
        end_date=date(2025, 3, 12),
        price=Decimal("9999"),
        currency="INR",
        reason="Conference",
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row
