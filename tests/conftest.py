"""Shared fixtures for savings ledger tests."""

import pytest

from savings_core.models import Budget, Goal, Transaction
from savings_core.services import BudgetService, GoalLedgerService, TransactionService
from savings_core.storage import JSONStorage, RecordStore

OWNER_A = "123e4567-e89b-12d3-a456-426614174000"
OWNER_B = "9b2f8c1e-4d3a-4f6b-8a7c-1e2d3c4b5a69"
MISSING_GOAL_ID = "00000000-0000-4000-8000-000000000000"


@pytest.fixture
def goal_store():
    return RecordStore(Goal)


@pytest.fixture
def goal_service(goal_store):
    return GoalLedgerService(goal_store)


@pytest.fixture
def budget_store():
    return RecordStore(Budget)


@pytest.fixture
def budget_service(budget_store):
    return BudgetService(budget_store)


@pytest.fixture
def transaction_store():
    return RecordStore(Transaction)


@pytest.fixture
def transaction_service(transaction_store):
    return TransactionService(transaction_store)


@pytest.fixture
def json_storage(tmp_path):
    return JSONStorage(tmp_path / "data")


def make_budget_payload(**overrides):
    payload = {
        "category": "groceries",
        "limit": "500.00",
        "period": "monthly",
        "asset_code": "usd",
        "start_date": "2024-01-01T00:00:00Z",
        "end_date": "2024-01-31T23:59:59Z",
    }
    payload.update(overrides)
    return payload


def make_transaction_payload(**overrides):
    payload = {
        "amount": "42.50",
        "category": "groceries",
        "date": "2024-01-15T12:00:00Z",
        "description": "Weekly shop",
    }
    payload.update(overrides)
    return payload
