"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from typing import Callable
from fastapi.testclient import TestClient
from spendcast.api.main import create_app
from spendcast.domain.models import Category, CategoryBudget, Transaction


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for transactions with sensible defaults; ids are unique per factory"""
    counter = {"n": 0}

    def factory(
        amount: int,
        timestamp: datetime = datetime(2025, 6, 10, 12, 0),
        category_id: Category = Category.GROCERIES,
        merchant: str = "Biedronka",
        id: str = None,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=id or f"tx_{counter['n']}",
            timestamp=timestamp,
            amount=amount,
            category_id=category_id,
            merchant_key=merchant,
        )

    return factory


@pytest.fixture
def june_groceries_budget() -> CategoryBudget:
    """100.000,00 groceries limit over June 2025 (30 days)"""
    return CategoryBudget.for_month(Category.GROCERIES, 100000, 2025, 6)


@pytest.fixture
def weekly_grocery_history(make_transaction) -> list[Transaction]:
    """Twelve weekly grocery runs of 5000 ending the week before 2025-06-10"""
    start = datetime(2025, 3, 18, 18, 30)
    return [
        make_transaction(5000 + (i % 3) * 250, timestamp=start + timedelta(weeks=i))
        for i in range(12)
    ]
