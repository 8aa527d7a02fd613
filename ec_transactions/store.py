"""
In-memory storage collaborator.

Owns record identity (auto-increment id, timestamps) and search. A database
backed store only needs the same `insert` / `query` / `get` / `clear`
methods. Duplicate "number/year" keys are stored as separate records.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from .models import SearchFilters, StoredTransaction, TransactionRecord

_SEARCHABLE_FIELDS: tuple[str, ...] = (
    "buyer_name",
    "seller_name",
    "house_number",
    "survey_number",
    "document_number",
)


class InMemoryTransactionStore:
    """Thread-safe list of StoredTransactions, ordered by id."""

    def __init__(self) -> None:
        self._records: list[StoredTransaction] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def insert(self, record: TransactionRecord) -> StoredTransaction:
        now = datetime.now(timezone.utc)
        with self._lock:
            stored = StoredTransaction(
                **record.model_dump(), id=self._next_id, created_at=now, updated_at=now
            )
            self._records.append(stored)
            self._next_id += 1
        return stored

    def query(self, filters: SearchFilters | None = None) -> list[StoredTransaction]:
        """Case-insensitive substring match on every filter that is set (AND)."""
        active: dict[str, str] = {}
        for name in _SEARCHABLE_FIELDS:
            value = getattr(filters, name, None)
            if value:
                active[name] = value.lower()
        with self._lock:
            records = list(self._records)
        return [r for r in records if _matches(r, active)]

    def get(self, record_id: int) -> StoredTransaction | None:
        with self._lock:
            return next((r for r in self._records if r.id == record_id), None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


def _matches(record: StoredTransaction, active: dict[str, str]) -> bool:
    for name, needle in active.items():
        value = getattr(record, name)
        if value is None or needle not in value.lower():
            return False
    return True
