"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import datetime
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from expense_ledger.api.main import create_app
from expense_ledger.infrastructure.database.models import Base, ExpenseDefinitionRecord
from expense_ledger.infrastructure.database.session import build_engine, get_db
from expense_ledger.domain.models import (
    IntervalType,
    LedgerEntry,
    Planning,
    Rating,
    RatingStatus,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_USER = "user_anna"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database, authenticated as TEST_USER"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app, headers={"X-User-ID": TEST_USER})


@pytest.fixture
def make_definition(db: Session):
    """Insert a definition directly, bypassing the first-charge logic of create_expense"""

    def _make(
        start_date: datetime,
        interval_type: IntervalType = IntervalType.MONTHS,
        interval_every: int = 1,
        amount: str = "10.00",
        purpose: str = "Streaming",
        user_id: str = TEST_USER,
        anchor_day_of_month: int | None = None,
        last_charged_at: datetime | None = None,
        times_charged: int = 0,
        is_recurring: bool = True,
    ) -> ExpenseDefinitionRecord:
        definition = ExpenseDefinitionRecord(
            user_id=user_id,
            purpose=purpose,
            amount=Decimal(amount),
            is_recurring=is_recurring,
            interval_type=interval_type,
            interval_every=interval_every,
            start_date=start_date,
            anchor_day_of_month=anchor_day_of_month,
            times_charged=times_charged,
            total_paid=Decimal(amount) * times_charged,
            last_charged_at=last_charged_at,
        )
        db.add(definition)
        db.commit()
        return definition

    return _make


def _make_entry(
    amount: float,
    charged_at: datetime,
    status: RatingStatus = RatingStatus.UNRATED,
    score: float | None = None,
    planned: Planning | None = None,
) -> LedgerEntry:
    """In-memory ledger entry for pure evaluator tests"""
    return LedgerEntry(
        id=uuid.uuid4(),
        definition_id=uuid.uuid4(),
        user_id=TEST_USER,
        purpose="Test",
        amount=Decimal(str(amount)),
        charged_at=charged_at,
        month_key=f"{charged_at.year:04d}-{charged_at.month:02d}",
        is_recurring=False,
        interval_snapshot="one-off",
        rating=Rating(status=status, score=score, q5_planned=planned),
    )


@pytest.fixture
def make_entry():
    return _make_entry

