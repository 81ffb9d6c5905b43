"""
Document Store - Abstraction Layer for Persistence
==================================================

Records are plain dicts keyed by an "id" field, grouped in named collections
("properties", "reviews", "users", "sessions").

Filters are dicts of field -> condition:
    {"property_id": "mh001"}            equality
    {"categories": "food"}              list field containing the value
    {"is_spam": {"$ne": True}}          not equal (missing fields match)
    {"urgency": {"$in": ["high", "critical"]}}

No multi-document transactions are assumed by callers.

USAGE:
    store = MemoryStore()
    store.insert("reviews", {"id": "r1", "property_id": "mh001", "rating": 5})
    store.find("reviews", {"property_id": "mh001"})
"""

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...domain.errors import ConflictError
from ...domain.models import new_id

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Filter = Optional[Dict[str, Any]]


def _matches_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict):
        if "$ne" in condition and value == condition["$ne"]:
            return False
        if "$in" in condition and value not in condition["$in"]:
            return False
        return True
    if isinstance(value, list):
        return condition in value
    return value == condition


def matches_filter(record: Record, filter: Filter) -> bool:
    """Check a record against a filter dict (all conditions must hold)."""
    if not filter:
        return True
    return all(_matches_condition(record.get(key), cond) for key, cond in filter.items())


class Store(ABC):
    """
    Abstract base class for document stores.
    Implement this interface to add new persistence backends.
    """

    @abstractmethod
    def find(self, collection: str, filter: Filter = None) -> List[Record]:
        """Return all matching records in insertion order."""
        ...

    @abstractmethod
    def insert(self, collection: str, record: Record) -> Record:
        """Insert a record (an id is assigned when missing). Raises ConflictError on duplicate id."""
        ...

    @abstractmethod
    def update_by_id(self, collection: str, record_id: str, patch: Record) -> Optional[Record]:
        """Merge patch into the record. Returns the updated record or None."""
        ...

    @abstractmethod
    def delete_by_id(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns True if something was deleted."""
        ...

    def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        return self.find_one(collection, {"id": record_id})

    def find_one(self, collection: str, filter: Filter = None) -> Optional[Record]:
        found = self.find(collection, filter)
        return found[0] if found else None

    def count_where(self, collection: str, filter: Filter = None) -> int:
        return len(self.find(collection, filter))

    def close(self) -> None:
        """Release resources (no-op by default)."""


class MemoryStore(Store):
    """
    In-process store with optional JSON snapshotting.

    When snapshot_path is given, existing data is loaded from it at start-up
    and the whole store is rewritten after every mutation.
    """

    def __init__(self, snapshot_path: Optional[Path] = None):
        self._data: Dict[str, Dict[str, Record]] = {}
        self._lock = threading.RLock()
        self._snapshot_path = Path(snapshot_path) if snapshot_path else None
        if self._snapshot_path:
            self._load()

    def _load(self) -> None:
        if not self._snapshot_path.exists():
            return
        try:
            with self._snapshot_path.open(encoding="utf-8") as fh:
                saved = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read snapshot {self._snapshot_path}: {e}. Starting empty.")
            return
        for collection, records in saved.items():
            self._data[collection] = {r["id"]: r for r in records}
        logger.info(f"Loaded snapshot {self._snapshot_path}: "
                    + ", ".join(f"{k}={len(v)}" for k, v in self._data.items()))

    def _save(self) -> None:
        if not self._snapshot_path:
            return
        payload = {name: list(records.values()) for name, records in self._data.items()}
        tmp = self._snapshot_path.with_suffix(self._snapshot_path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, default=str)
        tmp.replace(self._snapshot_path)

    def find(self, collection: str, filter: Filter = None) -> List[Record]:
        with self._lock:
            records = self._data.get(collection, {}).values()
            return [copy.deepcopy(r) for r in records if matches_filter(r, filter)]

    def insert(self, collection: str, record: Record) -> Record:
        with self._lock:
            record = copy.deepcopy(record)
            record.setdefault("id", new_id())
            records = self._data.setdefault(collection, {})
            if record["id"] in records:
                raise ConflictError(f"{collection} record '{record['id']}' already exists")
            records[record["id"]] = record
            self._save()
            return copy.deepcopy(record)

    def update_by_id(self, collection: str, record_id: str, patch: Record) -> Optional[Record]:
        with self._lock:
            record = self._data.get(collection, {}).get(record_id)
            if record is None:
                return None
            record.update(copy.deepcopy(patch))
            self._save()
            return copy.deepcopy(record)

    def delete_by_id(self, collection: str, record_id: str) -> bool:
        with self._lock:
            removed = self._data.get(collection, {}).pop(record_id, None)
            if removed is not None:
                self._save()
            return removed is not None
