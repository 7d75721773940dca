"""Data models for the savings ledger domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

__all__ = [
    "Budget",
    "Goal",
    "Transaction",
    "GOAL_ACTIVE",
    "GOAL_COMPLETE",
    "isoformat_utc",
    "parse_datetime",
]

GOAL_ACTIVE = "active"
GOAL_COMPLETE = "complete"


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="microseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Naive values are read as UTC.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class Goal:
    """A savings target owned by one user.

    ``progress`` and ``is_complete`` are derived from the two amounts and are
    recomputed by the service on every contribution. ``version`` is bumped by
    the store on every update and acts as the compare-and-swap token.
    """

    id: str
    owner_id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal
    progress: Decimal
    is_complete: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1

    @property
    def status(self) -> str:
        return GOAL_COMPLETE if self.is_complete else GOAL_ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the goal to JSON-friendly natives."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "target_amount": f"{self.target_amount:.2f}",
            "current_amount": f"{self.current_amount:.2f}",
            "progress": f"{self.progress:.2f}",
            "is_complete": self.is_complete,
            "status": self.status,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        """Hydrate a Goal from JSON-native data."""
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            name=data["name"],
            target_amount=Decimal(str(data["target_amount"])),
            current_amount=Decimal(str(data["current_amount"])),
            progress=Decimal(str(data["progress"])),
            is_complete=bool(data["is_complete"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            version=int(data.get("version", 1)),
        )


@dataclass(frozen=True)
class Budget:
    id: str
    owner_id: str
    category: str
    limit: Decimal
    period: str
    asset_code: str
    start_date: datetime
    end_date: datetime
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the budget to JSON-friendly natives."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "category": self.category,
            "limit": f"{self.limit:.2f}",
            "period": self.period,
            "asset_code": self.asset_code,
            "start_date": isoformat_utc(self.start_date),
            "end_date": isoformat_utc(self.end_date),
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Budget":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            category=data["category"],
            limit=Decimal(str(data["limit"])),
            period=data["period"],
            asset_code=data["asset_code"],
            start_date=parse_datetime(data["start_date"]),
            end_date=parse_datetime(data["end_date"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            version=int(data.get("version", 1)),
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    owner_id: str
    amount: Decimal
    category: str
    date: datetime
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "amount": f"{self.amount:.2f}",
            "category": self.category,
            "date": isoformat_utc(self.date),
            "description": self.description,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            amount=Decimal(str(data["amount"])),
            category=data["category"],
            date=parse_datetime(data["date"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            description=data.get("description"),
            version=int(data.get("version", 1)),
        )
