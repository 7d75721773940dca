"""Core business logic package for the savings ledger."""

from .exceptions import (
    AuthorizationError,
    ConflictError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .models import Budget, Goal, Transaction
from .progress import calculate_progress
from .services import BudgetService, GoalLedgerService, TransactionService
from .storage import JSONStorage, RecordStore

__all__ = [
    "Budget",
    "Goal",
    "Transaction",
    "BudgetService",
    "GoalLedgerService",
    "TransactionService",
    "JSONStorage",
    "RecordStore",
    "calculate_progress",
    "AuthorizationError",
    "ConflictError",
    "LedgerError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
