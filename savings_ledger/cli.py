"""Console interface for the savings ledger."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from savings_core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from savings_core.models import Budget, Goal, Transaction
from savings_core.services import BudgetService, GoalLedgerService, TransactionService
from savings_core.storage import JSONStorage, RecordStore
from savings_core.validators import BUDGET_PERIODS


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a finite number")
    if amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


def _load_services(
    data_dir: Path,
) -> Tuple[GoalLedgerService, BudgetService, TransactionService]:
    storage = JSONStorage(data_dir)
    goals = GoalLedgerService(RecordStore(Goal, storage, "goals.json"))
    budgets = BudgetService(RecordStore(Budget, storage, "budgets.json"))
    transactions = TransactionService(RecordStore(Transaction, storage, "transactions.json"))
    return goals, budgets, transactions


def _format_goal(goal: Dict[str, Any]) -> str:
    state = "complete" if goal["is_complete"] else "active"
    return (
        f"[{goal['id']}] {goal['name']} ({state})\n"
        f"  Saved: {goal['current_amount']} of {goal['target_amount']} ({goal['progress']}%)\n"
        f"  Updated: {goal['updated_at']}\n"
    )


def _format_budget(budget: Dict[str, Any]) -> str:
    return (
        f"[{budget['id']}] {budget['category']} {budget['asset_code']} {budget['limit']} "
        f"per {budget['period']}\n"
        f"  From {budget['start_date']} to {budget['end_date']}\n"
    )


def _format_transaction(transaction: Dict[str, Any]) -> str:
    line = (
        f"[{transaction['id']}] {transaction['date']} "
        f"{transaction['category']} {transaction['amount']}\n"
    )
    if transaction["description"]:
        line += f"  {transaction['description']}\n"
    return line


def handle_goal(args: argparse.Namespace, service: GoalLedgerService) -> None:
    if args.command == "create":
        goal = service.create_goal(args.user, args.name, args.target)
        print("Goal created:\n" + _format_goal(goal.to_dict()))
    elif args.command == "list":
        goals = service.find_goals_by_owner(args.user)
        if not goals:
            print("No goals found.")
            return
        print(f"Found {len(goals)} goals:")
        for goal in goals:
            print(_format_goal(goal.to_dict()))
    elif args.command == "show":
        goal = service.get_goal(args.user, args.id)
        print(_format_goal(goal.to_dict()))
    elif args.command == "contribute":
        goal = service.add_contribution(args.user, args.id, args.amount)
        print("Contribution recorded:\n" + _format_goal(goal.to_dict()))


def handle_budget(args: argparse.Namespace, service: BudgetService) -> None:
    if args.command == "add":
        payload = {
            "category": args.category,
            "limit": args.limit,
            "period": args.period,
            "asset_code": args.asset_code,
            "start_date": args.start_date,
            "end_date": args.end_date,
        }
        budget = service.create(args.user, payload)
        print("Budget added:\n" + _format_budget(budget.to_dict()))
    elif args.command == "list":
        budgets = service.list_for_owner(args.user, category=args.category, period=args.period)
        if not budgets:
            print("No budgets found.")
            return
        print(f"Found {len(budgets)} budgets:")
        for budget in budgets:
            print(_format_budget(budget.to_dict()))
    elif args.command == "show":
        budget = service.get(args.user, args.id)
        print(_format_budget(budget.to_dict()))
    elif args.command == "edit":
        changes = {
            "category": args.category,
            "limit": args.limit,
            "period": args.period,
            "asset_code": args.asset_code,
            "start_date": args.start_date,
            "end_date": args.end_date,
        }
        cleaned = {k: v for k, v in changes.items() if v is not None}
        budget = service.update(args.user, args.id, cleaned)
        print("Budget updated:\n" + _format_budget(budget.to_dict()))
    elif args.command == "delete":
        service.delete(args.user, args.id)
        print(f"Budget {args.id} deleted.")


def handle_transaction(args: argparse.Namespace, service: TransactionService) -> None:
    if args.command == "add":
        payload = {
            "amount": args.amount,
            "category": args.category,
            "date": args.date,
            "description": args.description,
        }
        transaction = service.create(args.user, payload)
        print("Transaction added:\n" + _format_transaction(transaction.to_dict()))
    elif args.command == "list":
        transactions = service.list_for_owner(
            args.user, category=args.category, start=args.start, end=args.end
        )
        if not transactions:
            print("No transactions found.")
            return
        print(f"Found {len(transactions)} transactions:")
        for transaction in transactions:
            print(_format_transaction(transaction.to_dict()))
    elif args.command == "show":
        transaction = service.get(args.user, args.id)
        print(_format_transaction(transaction.to_dict()))
    elif args.command == "delete":
        service.delete(args.user, args.id)
        print(f"Transaction {args.id} deleted.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Savings Ledger CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )
    parser.add_argument("--user", required=True, help="UUID of the acting user")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    goal_parser = subparsers.add_parser("goal", help="Manage savings goals")
    goal_sub = goal_parser.add_subparsers(dest="command", required=True)

    goal_create = goal_sub.add_parser("create", help="Create a savings goal")
    goal_create.add_argument("name")
    goal_create.add_argument("target", type=_parse_amount)

    goal_sub.add_parser("list", help="List your savings goals")

    goal_show = goal_sub.add_parser("show", help="Show one savings goal")
    goal_show.add_argument("id")

    goal_contribute = goal_sub.add_parser("contribute", help="Add money to a goal")
    goal_contribute.add_argument("id")
    goal_contribute.add_argument("amount", type=_parse_amount)

    budget_parser = subparsers.add_parser("budget", help="Manage budgets")
    budget_sub = budget_parser.add_subparsers(dest="command", required=True)

    budget_add = budget_sub.add_parser("add", help="Add a new budget")
    budget_add.add_argument("category")
    budget_add.add_argument("limit", type=_parse_amount)
    budget_add.add_argument("period", choices=sorted(BUDGET_PERIODS))
    budget_add.add_argument("asset_code")
    budget_add.add_argument("start_date")
    budget_add.add_argument("end_date")

    budget_list = budget_sub.add_parser("list", help="List budgets")
    budget_list.add_argument("--category")
    budget_list.add_argument("--period")

    budget_show = budget_sub.add_parser("show", help="Show one budget")
    budget_show.add_argument("id")

    budget_edit = budget_sub.add_parser("edit", help="Edit an existing budget")
    budget_edit.add_argument("id")
    budget_edit.add_argument("--category")
    budget_edit.add_argument("--limit", type=_parse_amount)
    budget_edit.add_argument("--period")
    budget_edit.add_argument("--asset-code")
    budget_edit.add_argument("--start-date")
    budget_edit.add_argument("--end-date")

    budget_delete = budget_sub.add_parser("delete", help="Delete a budget")
    budget_delete.add_argument("id")

    transaction_parser = subparsers.add_parser("transaction", help="Manage transactions")
    transaction_sub = transaction_parser.add_subparsers(dest="command", required=True)

    transaction_add = transaction_sub.add_parser("add", help="Record a transaction")
    transaction_add.add_argument("amount")
    transaction_add.add_argument("category")
    transaction_add.add_argument("date")
    transaction_add.add_argument("--description")

    transaction_list = transaction_sub.add_parser("list", help="List transactions")
    transaction_list.add_argument("--category")
    transaction_list.add_argument("--start")
    transaction_list.add_argument("--end")

    transaction_show = transaction_sub.add_parser("show", help="Show one transaction")
    transaction_show.add_argument("id")

    transaction_delete = transaction_sub.add_parser("delete", help="Delete a transaction")
    transaction_delete.add_argument("id")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        goal_service, budget_service, transaction_service = _load_services(args.data_dir)
        if args.entity == "goal":
            handle_goal(args, goal_service)
        elif args.entity == "budget":
            handle_budget(args, budget_service)
        elif args.entity == "transaction":
            handle_transaction(args, transaction_service)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except (NotFoundError, AuthorizationError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except ConflictError as exc:
        print(f"Conflict: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
