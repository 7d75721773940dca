"""Flask REST API exposing the savings ledger services."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from savings_core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from savings_core.models import Budget, Goal, Transaction
from savings_core.services import (
    DEFAULT_MAX_CONFLICT_RETRIES,
    BudgetService,
    GoalLedgerService,
    TransactionService,
)
from savings_core.storage import JSONStorage, RecordStore

USER_HEADER = "X-User-Id"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def create_app(
    data_dir: Optional[Path] = None,
    *,
    max_conflict_retries: Optional[int] = None,
) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("SAVINGS_LEDGER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("SAVINGS_LEDGER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    if max_conflict_retries is None:
        max_conflict_retries = _int_env("SAVINGS_LEDGER_MAX_RETRIES", DEFAULT_MAX_CONFLICT_RETRIES)

    storage = JSONStorage(Path(data_dir or os.getenv("SAVINGS_LEDGER_DATA_DIR", "data")))
    goal_service = GoalLedgerService(
        RecordStore(Goal, storage, "goals.json"),
        max_conflict_retries=max_conflict_retries,
    )
    budget_service = BudgetService(RecordStore(Budget, storage, "budgets.json"))
    transaction_service = TransactionService(
        RecordStore(Transaction, storage, "transactions.json")
    )
    app.extensions["goal_service"] = goal_service
    app.extensions["budget_service"] = budget_service
    app.extensions["transaction_service"] = transaction_service

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        if status >= 500:
            app.logger.error("%s on %s %s: %s", message, request.method, request.path, exc)
        else:
            app.logger.warning("%s on %s %s: %s", message, request.method, request.path, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(exc: AuthorizationError):
        return _handle_error(exc, 403, "Forbidden")

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(ConflictError)
    def handle_conflict(exc: ConflictError):
        return _handle_error(exc, 409, "Conflict")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _owner_id() -> str:
        owner_id = request.headers.get(USER_HEADER)
        if not owner_id:
            raise ValidationError(f"User ID is required in {USER_HEADER} header")
        return owner_id

    @app.post("/goals")
    def create_goal():
        owner_id = _owner_id()
        payload = _json_body()
        goal = goal_service.create_goal(
            owner_id, payload.get("name"), payload.get("target_amount")
        )
        return _success(goal.to_dict(), 201)

    @app.get("/goals")
    def list_goals():
        goals = goal_service.find_goals_by_owner(_owner_id())
        return _success({"items": [goal.to_dict() for goal in goals]})

    @app.get("/goals/<goal_id>")
    def get_goal(goal_id: str):
        goal = goal_service.get_goal(_owner_id(), goal_id)
        return _success(goal.to_dict())

    @app.patch("/goals/<goal_id>/contribution")
    def add_contribution(goal_id: str):
        owner_id = _owner_id()
        payload = _json_body()
        goal = goal_service.add_contribution(owner_id, goal_id, payload.get("amount"))
        return _success(goal.to_dict())

    @app.get("/budgets")
    def list_budgets():
        budgets = budget_service.list_for_owner(
            _owner_id(),
            category=request.args.get("category") or None,
            period=request.args.get("period") or None,
        )
        return _success({"items": [budget.to_dict() for budget in budgets]})

    @app.post("/budgets")
    def create_budget():
        owner_id = _owner_id()
        budget = budget_service.create(owner_id, _json_body())
        return _success(budget.to_dict(), 201)

    @app.get("/budgets/<budget_id>")
    def get_budget(budget_id: str):
        budget = budget_service.get(_owner_id(), budget_id)
        return _success(budget.to_dict())

    @app.put("/budgets/<budget_id>")
    def update_budget(budget_id: str):
        owner_id = _owner_id()
        budget = budget_service.update(owner_id, budget_id, _json_body())
        return _success(budget.to_dict())

    @app.delete("/budgets/<budget_id>")
    def delete_budget(budget_id: str):
        budget_service.delete(_owner_id(), budget_id)
        return _success({}, 204)

    @app.get("/transactions")
    def list_transactions():
        transactions = transaction_service.list_for_owner(
            _owner_id(),
            category=request.args.get("category") or None,
            start=request.args.get("start") or None,
            end=request.args.get("end") or None,
        )
        return _success({"items": [transaction.to_dict() for transaction in transactions]})

    @app.post("/transactions")
    def create_transaction():
        owner_id = _owner_id()
        transaction = transaction_service.create(owner_id, _json_body())
        return _success(transaction.to_dict(), 201)

    @app.get("/transactions/<transaction_id>")
    def get_transaction(transaction_id: str):
        transaction = transaction_service.get(_owner_id(), transaction_id)
        return _success(transaction.to_dict())

    @app.put("/transactions/<transaction_id>")
    def update_transaction(transaction_id: str):
        owner_id = _owner_id()
        transaction = transaction_service.update(owner_id, transaction_id, _json_body())
        return _success(transaction.to_dict())

    @app.delete("/transactions/<transaction_id>")
    def delete_transaction(transaction_id: str):
        transaction_service.delete(_owner_id(), transaction_id)
        return _success({}, 204)

    return app
