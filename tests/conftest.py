"""Pytest fixtures for testing"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from insight_engine.api.main import create_app
from insight_engine.domain.models import Transaction
from insight_engine.domain.notifications import NotificationStore


class FakeClock:
    """Controllable clock for notification timestamps and expiry"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_transaction(
    txn_id: str,
    name: str,
    amount: float,
    date: datetime,
    type: str = "expense",
    category: str | None = None,
    account_id: str | None = "acct_1",
) -> Transaction:
    return Transaction(
        id=txn_id,
        name=name,
        amount=amount,
        type=type,
        date=date,
        category=category,
        account_id=account_id,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 15, 12, 0, 0))


@pytest.fixture
def store(clock: FakeClock) -> NotificationStore:
    """Independent notification store per test"""
    return NotificationStore(clock=clock)


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client with fresh application state"""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Three months of groceries, weekly coffee and monthly income"""
    base_date = datetime(2024, 1, 1)
    transactions = []

    for month in range(3):
        transactions.append(
            make_transaction(
                f"salary_{month}",
                "ACME Payroll",
                3000.0,
                base_date + timedelta(days=month * 31),
                type="income",
                category="Income",
            )
        )

    for week in range(12):
        transactions.append(
            make_transaction(
                f"grocery_{week}",
                "Whole Foods Market",
                80.0,
                base_date + timedelta(days=week * 7),
                category="Groceries",
            )
        )

    for day in range(0, 84, 2):
        transactions.append(
            make_transaction(
                f"coffee_{day}",
                "Starbucks",
                5.5,
                base_date + timedelta(days=day),
                category="Food & Dining",
            )
        )

    return transactions
