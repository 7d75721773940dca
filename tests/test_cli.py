import re

import pytest

from savings_ledger.cli import main
from tests.conftest import OWNER_A, OWNER_B

ID_PATTERN = re.compile(r"\[([0-9a-f-]{36})\]")


def _run(capsys, data_dir, user, *args):
    code = main(["--data-dir", str(data_dir), "--user", user, *args])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_goal_lifecycle(tmp_path, capsys):
    code, out, _ = _run(capsys, tmp_path, OWNER_A, "goal", "create", "Emergency Fund", "1000")
    assert code == 0
    goal_id = ID_PATTERN.search(out).group(1)

    code, out, _ = _run(capsys, tmp_path, OWNER_A, "goal", "contribute", goal_id, "250.50")
    assert code == 0
    assert "Saved: 250.50 of 1000.00 (25.05%)" in out

    code, out, _ = _run(capsys, tmp_path, OWNER_A, "goal", "list")
    assert "Found 1 goals" in out

    code, _, err = _run(capsys, tmp_path, OWNER_A, "goal", "contribute", goal_id, "800")
    assert code == 1
    assert "Contribution would exceed target amount" in err


def test_foreign_goal_is_refused(tmp_path, capsys):
    _, out, _ = _run(capsys, tmp_path, OWNER_A, "goal", "create", "Emergency Fund", "1000")
    goal_id = ID_PATTERN.search(out).group(1)

    code, _, err = _run(capsys, tmp_path, OWNER_B, "goal", "show", goal_id)
    assert code == 1
    assert "You do not have permission to access this goal" in err


def test_invalid_user_reports_validation_error(tmp_path, capsys):
    code, _, err = _run(capsys, tmp_path, "nobody", "goal", "list")
    assert code == 1
    assert "Validation error: User ID must be a valid UUID" in err


def test_budget_add_and_list(tmp_path, capsys):
    code, out, _ = _run(
        capsys,
        tmp_path,
        OWNER_A,
        "budget",
        "add",
        "Groceries",
        "400",
        "monthly",
        "usd",
        "2024-01-01T00:00:00Z",
        "2024-01-31T23:59:59Z",
    )
    assert code == 0
    assert "Groceries USD 400.00 per monthly" in out

    code, out, _ = _run(capsys, tmp_path, OWNER_A, "budget", "list", "--period", "monthly")
    assert "Found 1 budgets" in out


def test_non_positive_amount_is_rejected_by_parser(tmp_path):
    with pytest.raises(SystemExit):
        main(["--data-dir", str(tmp_path), "--user", OWNER_A, "goal", "create", "Goal", "0"])


@pytest.mark.parametrize("amount", ["NaN", "sNaN", "Infinity"])
def test_non_finite_amount_is_a_usage_error(tmp_path, capsys, amount):
    with pytest.raises(SystemExit) as excinfo:
        main(["--data-dir", str(tmp_path), "--user", OWNER_A, "goal", "create", "Goal", amount])
    assert excinfo.value.code == 2
    assert "Amount must be a finite number" in capsys.readouterr().err


def test_transaction_add_and_filtered_list(tmp_path, capsys):
    code, out, _ = _run(
        capsys, tmp_path, OWNER_A, "transaction", "add", "0", "Coffee", "2024-03-02T08:00:00Z"
    )
    assert code == 0
    assert "Coffee 0.00" in out

    _run(capsys, tmp_path, OWNER_A, "transaction", "add", "15", "Books", "2024-04-01T00:00:00Z")
    code, out, _ = _run(
        capsys, tmp_path, OWNER_A, "transaction", "list", "--end", "2024-03-31T23:59:59Z"
    )
    assert "Found 1 transactions" in out

    code, _, err = _run(
        capsys, tmp_path, OWNER_A, "transaction", "add", "-1", "Coffee", "2024-03-02T08:00:00Z"
    )
    assert code == 1
    assert "Validation error: Amount cannot be negative" in err
