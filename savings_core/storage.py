"""Persistence utilities for the savings ledger core services."""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Type, TypeVar
from uuid import uuid4

from .exceptions import ConflictError, NotFoundError, PersistenceError

R = TypeVar("R")


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def load(self, resource: str) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path


class RecordStore(Generic[R]):
    """Keyed repository of frozen dataclass records.

    Records are held in insertion order. When a ``JSONStorage`` is given the
    store hydrates from ``resource`` on construction and writes a full snapshot
    after every mutation; otherwise it lives purely in memory.

    Every mutation runs under one lock, which makes ``update`` with
    ``expected_version`` an atomic compare-and-swap: the write only happens if
    the stored record still carries that version.
    """

    def __init__(
        self,
        model: Type[R],
        storage: Optional[JSONStorage] = None,
        resource: Optional[str] = None,
        *,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        if storage is not None and not resource:
            raise ValueError("resource is required when storage is given")
        self._model = model
        self._storage = storage
        self._resource = resource
        self._id_factory = id_factory
        self._records: Dict[str, R] = {}
        self._lock = threading.RLock()
        self.load()

    # Public API -----------------------------------------------------------
    def find(self) -> List[R]:
        with self._lock:
            return list(self._records.values())

    def find_one(self, record_id: str) -> Optional[R]:
        with self._lock:
            return self._records.get(record_id)

    def find_by_owner(self, owner_id: str) -> List[R]:
        with self._lock:
            return [
                record
                for record in self._records.values()
                if record.owner_id == owner_id
            ]

    def create(self, fields: Dict[str, Any]) -> R:
        """Assign an id and version 1, store the record and return it."""
        with self._lock:
            record_id = self._id_factory()
            record = self._model(**{**fields, "id": record_id, "version": 1})
            self._records[record_id] = record
            try:
                self._persist()
            except PersistenceError:
                del self._records[record_id]
                raise
            return record

    def update(
        self,
        record_id: str,
        changes: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> R:
        """Merge ``changes`` into the stored record and bump its version.

        Raises ``ConflictError`` when ``expected_version`` no longer matches.
        """
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                raise NotFoundError(f"Record {record_id} not found")
            current_version = existing.version
            if expected_version is not None and current_version != expected_version:
                raise ConflictError(f"Record {record_id} was modified concurrently")
            cleaned = {k: v for k, v in changes.items() if k not in ("id", "version")}
            updated = replace(existing, **cleaned, version=current_version + 1)
            self._records[record_id] = updated
            try:
                self._persist()
            except PersistenceError:
                self._records[record_id] = existing
                raise
            return updated

    def delete(self, record_id: str) -> bool:
        with self._lock:
            existing = self._records.pop(record_id, None)
            if existing is None:
                return False
            try:
                self._persist()
            except PersistenceError:
                self._records[record_id] = existing
                raise
            return True

    def load(self) -> None:
        """Load existing records from persistence."""
        if self._storage is None:
            return
        raw_records = self._storage.load(self._resource)
        try:
            hydrated = {
                payload["id"]: self._model.from_dict(payload) for payload in raw_records
            }
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise PersistenceError(f"Malformed record in {self._resource}") from exc
        with self._lock:
            self._records = hydrated

    # Internal helpers -----------------------------------------------------
    def _persist(self) -> None:
        if self._storage is None:
            return
        self._storage.save(
            self._resource, [record.to_dict() for record in self._records.values()]
        )
