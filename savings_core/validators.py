"""Validation helpers shared across savings ledger services."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from .exceptions import ValidationError
from .models import parse_datetime

# Any UUID version, either case.
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
ASSET_CODE_PATTERN = re.compile(r"^[A-Z0-9]{1,12}$")

BUDGET_PERIODS = {"monthly", "weekly", "yearly"}

MONEY_PLACES = Decimal("0.01")


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(raw: object, label: str) -> Decimal:
    """Convert ``raw`` to a Decimal through its shortest decimal text.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(raw, bool) or not isinstance(raw, (int, float, Decimal, str)):
        raise ValidationError(f"{label} must be a number")
    try:
        return Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"{label} must be a number") from exc


def validate_money_amount(raw: object, label: str, *, allow_zero: bool = False) -> Decimal:
    """Check money shape and return it as a Decimal with two fraction digits."""
    amount = to_decimal(raw, label)

    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number")

    if allow_zero:
        if amount < 0:
            raise ValidationError(f"{label} cannot be negative")
    elif amount <= 0:
        raise ValidationError(f"{label} must be greater than 0")

    # normalize() strips trailing zeros, so "1.100" counts as one place.
    if amount != 0 and amount.normalize().as_tuple().exponent < -2:
        raise ValidationError(f"{label} cannot have more than 2 decimal places")

    try:
        return _quantize_two_decimals(amount)
    except InvalidOperation as exc:
        raise ValidationError(f"{label} is too large") from exc


def validate_identifier(value: object, label: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{label} is required and must be a string")
    if not value.strip():
        raise ValidationError(f"{label} cannot be empty")
    if not UUID_PATTERN.fullmatch(value):
        raise ValidationError(f"{label} must be a valid UUID")
    return value


def validate_name(
    value: object, label: str = "Name", *, min_length: int = 2, max_length: int = 255
) -> str:
    """Return the trimmed name or raise if it is blank, too short or too long."""
    if not isinstance(value, str):
        raise ValidationError(f"{label} is required and must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{label} cannot be empty")
    if len(trimmed) < min_length:
        raise ValidationError(f"{label} must be at least {min_length} characters long")
    if len(trimmed) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return trimmed


def validate_optional_text(value: object, label: str, max_length: int = 200) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return trimmed or None


def validate_enum(value: object, label: str, allowed: Iterable[str]) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    canonical = value.strip().lower()
    if canonical not in allowed:
        raise ValidationError(f"{label} must be one of: {', '.join(sorted(allowed))}")
    return canonical


def validate_asset_code(value: object, label: str = "Asset code") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required and cannot be empty")
    code = value.strip().upper()
    if len(code) > 12:
        raise ValidationError(f"{label} must be at most 12 characters")
    if not ASSET_CODE_PATTERN.fullmatch(code):
        raise ValidationError(f"{label} must be alphanumeric")
    return code


def validate_datetime(value: object, label: str) -> datetime:
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = parse_datetime(value)
        except ValueError as exc:
            raise ValidationError(f"{label} must be a valid date") from exc
    else:
        raise ValidationError(f"{label} must be a datetime or ISO 8601 string")
    return dt.astimezone(timezone.utc)


def ensure_date_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise ValidationError("Start date must be before or equal to end date")
