"""Framework-agnostic business services for the savings ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from .exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .models import Budget, Goal, Transaction
from .progress import calculate_progress
from .storage import RecordStore
from .validators import (
    BUDGET_PERIODS,
    ensure_date_range,
    validate_asset_code,
    validate_datetime,
    validate_enum,
    validate_identifier,
    validate_money_amount,
    validate_name,
    validate_optional_text,
)

GOAL_NOT_FOUND = "Goal not found"
GOAL_FORBIDDEN = "You do not have permission to access this goal"
EXCEEDS_TARGET = "Contribution would exceed target amount"
GOAL_CONFLICT = "Goal was modified concurrently, please retry"
BUDGET_NOT_FOUND = "Budget not found"
BUDGET_FORBIDDEN = "You do not have permission to access this budget"
BUDGET_CONFLICT = "Budget was modified concurrently, please retry"
TRANSACTION_NOT_FOUND = "Transaction not found"
TRANSACTION_FORBIDDEN = "You do not have permission to access this transaction"
TRANSACTION_CONFLICT = "Transaction was modified concurrently, please retry"

DEFAULT_MAX_CONFLICT_RETRIES = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoalLedgerService:
    """Creates savings goals and applies contributions to them.

    Contributions use the store's versioned update: the goal is read, the new
    amount is checked against the target, and the write only lands if nobody
    else updated the goal in between. A lost race re-reads and re-checks, so
    two contributions that jointly overshoot the target can never both pass.
    """

    def __init__(
        self,
        store: RecordStore[Goal],
        *,
        max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES,
    ) -> None:
        if max_conflict_retries < 0:
            raise ValueError("max_conflict_retries cannot be negative")
        self._store = store
        self._max_conflict_retries = max_conflict_retries

    # Public API -----------------------------------------------------------
    def create_goal(self, owner_id: str, name: str, target_amount: object) -> Goal:
        validate_identifier(owner_id, "User ID")
        clean_name = validate_name(name)
        target = validate_money_amount(target_amount, "Target amount")

        now = _utcnow()
        return self._store.create(
            {
                "owner_id": owner_id,
                "name": clean_name,
                "target_amount": target,
                "current_amount": Decimal("0.00"),
                "progress": Decimal("0.00"),
                "is_complete": False,
                "created_at": now,
                "updated_at": now,
            }
        )

    def find_goals_by_owner(self, owner_id: str) -> List[Goal]:
        validate_identifier(owner_id, "User ID")
        return self._store.find_by_owner(owner_id)

    def get_goal(self, owner_id: str, goal_id: str) -> Goal:
        """Return a goal's detail, enforcing that ``owner_id`` owns it."""
        validate_identifier(owner_id, "User ID")
        validate_identifier(goal_id, "Goal ID")
        return self._get_owned(owner_id, goal_id)

    def add_contribution(self, owner_id: str, goal_id: str, amount: object) -> Goal:
        validate_identifier(owner_id, "User ID")
        validate_identifier(goal_id, "Goal ID")
        contribution = validate_money_amount(amount, "Contribution amount")

        attempt = 0
        while True:
            goal = self._get_owned(owner_id, goal_id)
            new_current = goal.current_amount + contribution
            if new_current > goal.target_amount:
                raise ValidationError(EXCEEDS_TARGET)

            changes = {
                "current_amount": new_current,
                "progress": calculate_progress(new_current, goal.target_amount),
                "is_complete": new_current == goal.target_amount,
                "updated_at": _utcnow(),
            }
            try:
                return self._store.update(goal.id, changes, expected_version=goal.version)
            except ConflictError as exc:
                if attempt >= self._max_conflict_retries:
                    raise ConflictError(GOAL_CONFLICT) from exc
                attempt += 1
            except NotFoundError as exc:
                # Deleted between the read and the write.
                raise NotFoundError(GOAL_NOT_FOUND) from exc

    def validate_ownership(self, owner_id: str, goal_id: str) -> bool:
        validate_identifier(owner_id, "User ID")
        validate_identifier(goal_id, "Goal ID")
        self._get_owned(owner_id, goal_id)
        return True

    # Internal helpers -----------------------------------------------------
    def _get_owned(self, owner_id: str, goal_id: str) -> Goal:
        goal = self._store.find_one(goal_id)
        if goal is None:
            raise NotFoundError(GOAL_NOT_FOUND)
        if goal.owner_id != owner_id:
            raise AuthorizationError(GOAL_FORBIDDEN)
        return goal


class BudgetService:
    """Manages spending budgets per user and mediates persistence."""

    def __init__(self, store: RecordStore[Budget]) -> None:
        self._store = store

    def create(self, owner_id: str, payload: Dict[str, object]) -> Budget:
        validate_identifier(owner_id, "User ID")
        data = self._validate_payload(payload)
        now = _utcnow()
        return self._store.create(
            {**data, "owner_id": owner_id, "created_at": now, "updated_at": now}
        )

    def get(self, owner_id: str, budget_id: str) -> Budget:
        validate_identifier(owner_id, "User ID")
        validate_identifier(budget_id, "Budget ID")
        return self._get_owned(owner_id, budget_id)

    def list_for_owner(
        self,
        owner_id: str,
        *,
        category: Optional[str] = None,
        period: Optional[str] = None,
    ) -> List[Budget]:
        validate_identifier(owner_id, "User ID")
        budgets = self._store.find_by_owner(owner_id)
        if category is not None:
            canonical = validate_name(category, "Category").lower()
            budgets = [budget for budget in budgets if budget.category.lower() == canonical]
        if period is not None:
            wanted = validate_enum(period, "Period", BUDGET_PERIODS)
            budgets = [budget for budget in budgets if budget.period == wanted]
        return budgets

    def update(self, owner_id: str, budget_id: str, changes: Dict[str, object]) -> Budget:
        """Apply a partial update; the merged budget is validated as a whole."""
        existing = self.get(owner_id, budget_id)
        # Merge existing serialised data with incoming changes to support partial updates.
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload)
        data["updated_at"] = _utcnow()
        try:
            return self._store.update(budget_id, data, expected_version=existing.version)
        except ConflictError as exc:
            raise ConflictError(BUDGET_CONFLICT) from exc
        except NotFoundError as exc:
            raise NotFoundError(BUDGET_NOT_FOUND) from exc

    def delete(self, owner_id: str, budget_id: str) -> None:
        self.get(owner_id, budget_id)
        if not self._store.delete(budget_id):
            raise NotFoundError(BUDGET_NOT_FOUND)

    def _get_owned(self, owner_id: str, budget_id: str) -> Budget:
        budget = self._store.find_one(budget_id)
        if budget is None:
            raise NotFoundError(BUDGET_NOT_FOUND)
        if budget.owner_id != owner_id:
            raise AuthorizationError(BUDGET_FORBIDDEN)
        return budget

    def _validate_payload(self, payload: Dict[str, object]) -> Dict[str, object]:
        if not isinstance(payload, dict):
            raise ValidationError("Budget data is required and must be an object")
        base = {
            "category": validate_name(payload.get("category"), "Category", max_length=50),
            "limit": validate_money_amount(payload.get("limit"), "Limit"),
            "period": validate_enum(payload.get("period"), "Period", BUDGET_PERIODS),
            "asset_code": validate_asset_code(payload.get("asset_code")),
            "start_date": validate_datetime(payload.get("start_date"), "Start date"),
            "end_date": validate_datetime(payload.get("end_date"), "End date"),
        }
        ensure_date_range(base["start_date"], base["end_date"])
        return base


class TransactionService:
    """Records income and spending entries per user.

    Amounts may be zero but never negative. Listing can be narrowed by
    category and by an inclusive date range on ``date``.
    """

    def __init__(self, store: RecordStore[Transaction]) -> None:
        self._store = store

    def create(self, owner_id: str, payload: Dict[str, object]) -> Transaction:
        validate_identifier(owner_id, "User ID")
        data = self._validate_payload(payload)
        now = _utcnow()
        return self._store.create(
            {**data, "owner_id": owner_id, "created_at": now, "updated_at": now}
        )

    def get(self, owner_id: str, transaction_id: str) -> Transaction:
        validate_identifier(owner_id, "User ID")
        validate_identifier(transaction_id, "Transaction ID")
        return self._get_owned(owner_id, transaction_id)

    def list_for_owner(
        self,
        owner_id: str,
        *,
        category: Optional[str] = None,
        start: Optional[object] = None,
        end: Optional[object] = None,
    ) -> List[Transaction]:
        validate_identifier(owner_id, "User ID")
        start_dt = validate_datetime(start, "Start date") if start is not None else None
        end_dt = validate_datetime(end, "End date") if end is not None else None
        if start_dt is not None and end_dt is not None:
            ensure_date_range(start_dt, end_dt)
        canonical = validate_name(category, "Category").lower() if category is not None else None

        def matches(transaction: Transaction) -> bool:
            if canonical and transaction.category.lower() != canonical:
                return False
            if start_dt and transaction.date < start_dt:
                return False
            if end_dt and transaction.date > end_dt:
                return False
            return True

        records = filter(matches, self._store.find_by_owner(owner_id))
        return sorted(records, key=lambda transaction: transaction.date)

    def update(
        self, owner_id: str, transaction_id: str, changes: Dict[str, object]
    ) -> Transaction:
        existing = self.get(owner_id, transaction_id)
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload)
        data["updated_at"] = _utcnow()
        try:
            return self._store.update(transaction_id, data, expected_version=existing.version)
        except ConflictError as exc:
            raise ConflictError(TRANSACTION_CONFLICT) from exc
        except NotFoundError as exc:
            raise NotFoundError(TRANSACTION_NOT_FOUND) from exc

    def delete(self, owner_id: str, transaction_id: str) -> None:
        self.get(owner_id, transaction_id)
        if not self._store.delete(transaction_id):
            raise NotFoundError(TRANSACTION_NOT_FOUND)

    def _get_owned(self, owner_id: str, transaction_id: str) -> Transaction:
        transaction = self._store.find_one(transaction_id)
        if transaction is None:
            raise NotFoundError(TRANSACTION_NOT_FOUND)
        if transaction.owner_id != owner_id:
            raise AuthorizationError(TRANSACTION_FORBIDDEN)
        return transaction

    def _validate_payload(self, payload: Dict[str, object]) -> Dict[str, object]:
        if not isinstance(payload, dict):
            raise ValidationError("Transaction data is required and must be an object")
        return {
            "amount": validate_money_amount(payload.get("amount"), "Amount", allow_zero=True),
            "category": validate_name(payload.get("category"), "Category", max_length=50),
            "date": validate_datetime(payload.get("date"), "Date"),
            "description": validate_optional_text(payload.get("description"), "Description"),
        }
