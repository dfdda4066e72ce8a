"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finflow_gateway.api.main import create_app
from finflow_gateway.api.dependencies import get_today
from finflow_gateway.infrastructure.database.models import (
    Base,
    BudgetRow,
    DebtRow,
    ObligationRow,
    RecurringRow,
    SavingsGoalRow,
    TransactionRow,
)
from finflow_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SPACE_ID = "space_home"
OTHER_SPACE_ID = "space_office"
TODAY = date(2025, 3, 8)


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
    """Create FastAPI test client with test database and a fixed today"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app, headers={"X-Space-ID": SPACE_ID})


class Seeder:
    """Inserts rows for a space; amounts accept ints or strings"""

    def __init__(self, db: Session):
        self.db = db

    def _add(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def obligation(self, title, amount, due_date, status="pending", space_id=SPACE_ID, **kwargs) -> ObligationRow:
        return self._add(
            ObligationRow(
                space_id=space_id,
                title=title,
                amount=Decimal(str(amount)),
                due_date=due_date,
                status=status,
                **kwargs,
            )
        )

    def debt(
        self,
        name,
        monthly_payment,
        next_payment_date,
        remaining=6,
        total_installments=12,
        total_amount=None,
        space_id=SPACE_ID,
        **kwargs,
    ) -> DebtRow:
        monthly = Decimal(str(monthly_payment))
        return self._add(
            DebtRow(
                space_id=space_id,
                name=name,
                total_amount=Decimal(str(total_amount)) if total_amount is not None else monthly * remaining,
                monthly_payment=monthly,
                remaining_installments=remaining,
                total_installments=total_installments,
                next_payment_date=next_payment_date,
                **kwargs,
            )
        )

    def recurring(self, description, amount, next_run, type="expense", space_id=SPACE_ID, **kwargs) -> RecurringRow:
        return self._add(
            RecurringRow(
                space_id=space_id,
                description=description,
                amount=Decimal(str(amount)),
                next_run=next_run,
                type=type,
                **kwargs,
            )
        )

    def transaction(self, type, amount, on=TODAY, category=None, space_id=SPACE_ID) -> TransactionRow:
        return self._add(
            TransactionRow(
                space_id=space_id,
                type=type,
                amount=Decimal(str(amount)),
                date=on,
                description=f"{type} {amount}",
                category=category,
            )
        )

    def goal(self, category, current_amount, target_amount, space_id=SPACE_ID) -> SavingsGoalRow:
        return self._add(
            SavingsGoalRow(
                space_id=space_id,
                name=category,
                category=category,
                current_amount=Decimal(str(current_amount)),
                target_amount=Decimal(str(target_amount)),
            )
        )

    def budget(self, category, limit_amount, month="2025-03", alert_threshold=80, space_id=SPACE_ID) -> BudgetRow:
        return self._add(
            BudgetRow(
                space_id=space_id,
                category=category,
                month=month,
                limit_amount=Decimal(str(limit_amount)),
                alert_threshold=Decimal(str(alert_threshold)),
            )
        )


@pytest.fixture
def seed(db: Session) -> Seeder:
    return Seeder(db)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def space_id() -> str:
    return SPACE_ID


@pytest.fixture
def other_space_id() -> str:
    return OTHER_SPACE_ID
