from datetime import datetime, timezone
from decimal import Decimal

import pytest

from savings_core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tests.conftest import MISSING_GOAL_ID, OWNER_A, OWNER_B, make_budget_payload


class TestCreateBudget:
    def test_creates_normalised_budget(self, budget_service):
        budget = budget_service.create(OWNER_A, make_budget_payload(category=" Groceries "))

        assert budget.owner_id == OWNER_A
        assert budget.category == "Groceries"
        assert budget.limit == Decimal("500.00")
        assert budget.period == "monthly"
        assert budget.asset_code == "USD"
        assert budget.start_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert budget.version == 1

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"limit": 0}, "Limit must be greater than 0"),
            ({"limit": "10.999"}, "Limit cannot have more than 2 decimal places"),
            ({"category": "x"}, "Category must be at least 2 characters long"),
            ({"period": "daily"}, "Period must be one of: monthly, weekly, yearly"),
            ({"asset_code": "$$"}, "Asset code must be alphanumeric"),
            ({"end_date": "2023-12-31T00:00:00Z"}, "Start date must be before or equal to end date"),
            ({"start_date": None}, "Start date must be a datetime or ISO 8601 string"),
        ],
    )
    def test_rejects_invalid_fields(self, budget_service, overrides, message):
        with pytest.raises(ValidationError, match=message):
            budget_service.create(OWNER_A, make_budget_payload(**overrides))

    def test_rejects_non_mapping_payload(self, budget_service):
        with pytest.raises(ValidationError, match="Budget data is required"):
            budget_service.create(OWNER_A, ["not", "a", "dict"])


class TestBudgetQueries:
    def test_lists_only_owner_budgets_with_filters(self, budget_service):
        groceries = budget_service.create(OWNER_A, make_budget_payload())
        travel = budget_service.create(
            OWNER_A, make_budget_payload(category="Travel", period="yearly")
        )
        budget_service.create(OWNER_B, make_budget_payload())

        assert budget_service.list_for_owner(OWNER_A) == [groceries, travel]
        assert budget_service.list_for_owner(OWNER_A, category="GROCERIES") == [groceries]
        assert budget_service.list_for_owner(OWNER_A, period="yearly") == [travel]

    def test_get_enforces_existence_then_ownership(self, budget_service):
        budget = budget_service.create(OWNER_A, make_budget_payload())

        assert budget_service.get(OWNER_A, budget.id) == budget
        with pytest.raises(AuthorizationError, match="permission to access this budget"):
            budget_service.get(OWNER_B, budget.id)
        with pytest.raises(NotFoundError, match="Budget not found"):
            budget_service.get(OWNER_A, MISSING_GOAL_ID)


class TestBudgetMutations:
    def test_partial_update_revalidates_merged_budget(self, budget_service):
        budget = budget_service.create(OWNER_A, make_budget_payload())

        updated = budget_service.update(OWNER_A, budget.id, {"limit": 750})
        assert updated.limit == Decimal("750.00")
        assert updated.category == budget.category
        assert updated.version == 2

        with pytest.raises(ValidationError, match="Limit must be greater than 0"):
            budget_service.update(OWNER_A, budget.id, {"limit": -1})

    def test_update_by_other_user_is_forbidden(self, budget_service):
        budget = budget_service.create(OWNER_A, make_budget_payload())
        with pytest.raises(AuthorizationError):
            budget_service.update(OWNER_B, budget.id, {"limit": 1})

    def test_delete_removes_budget(self, budget_service):
        budget = budget_service.create(OWNER_A, make_budget_payload())
        budget_service.delete(OWNER_A, budget.id)

        assert budget_service.list_for_owner(OWNER_A) == []
        with pytest.raises(NotFoundError):
            budget_service.delete(OWNER_A, budget.id)

    def test_concurrent_edit_is_reported_without_version_details(
        self, budget_service, budget_store, monkeypatch
    ):
        budget = budget_service.create(OWNER_A, make_budget_payload())

        def stale_update(record_id, changes, expected_version=None):
            raise ConflictError(f"Record {record_id} was modified concurrently")

        monkeypatch.setattr(budget_store, "update", stale_update)
        with pytest.raises(ConflictError) as excinfo:
            budget_service.update(OWNER_A, budget.id, {"limit": 600})
        assert str(excinfo.value) == "Budget was modified concurrently, please retry"
