"""
Row-level repository interface over the platform tables.

Services talk to a Repository instead of the database client so the same
code runs against Supabase in production and an InMemoryRepository in tests
or when no database is reachable.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from utils.file_storage import generate_uuid, utc_now_iso

logger = logging.getLogger(__name__)

TABLES = (
    "courses",
    "videos",
    "notes",
    "quizzes",
    "quiz_attempts",
    "course_enrollments",
    "course_progress",
    "certificates",
    "profiles",
)

Filters = Optional[Dict[str, Any]]


class Repository(ABC):
    """Equality-filtered CRUD over named tables"""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        ...

    def get(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters)
        return rows[0] if rows else None

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.insert(table, row) for row in rows]

    @abstractmethod
    def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def upsert(self, table: str, row: Dict[str, Any], on_conflict: str = "id") -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Filters = None) -> int:
        ...


def _matches(row: Dict[str, Any], filters: Filters) -> bool:
    if not filters:
        return True
    return all(row.get(key) == value for key, value in filters.items())


class InMemoryRepository(Repository):
    """
    Repository held entirely in this instance.

    Construct one and pass it to whatever needs it; reset() empties every
    table. Rows are copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self, seed: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self.reset()
        for table, rows in (seed or {}).items():
            self.insert_many(table, rows)

    def reset(self) -> None:
        self._tables = {table: [] for table in TABLES}

    def _table(self, table: str) -> List[Dict[str, Any]]:
        return self._tables.setdefault(table, [])

    def select(self, table, filters=None, order_by=None, descending=False):
        rows = [copy.deepcopy(row) for row in self._table(table) if _matches(row, filters)]
        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            absent = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + absent
        return rows

    def insert(self, table, row):
        stored = copy.deepcopy(row)
        stored.setdefault("id", generate_uuid())
        stored.setdefault("created_at", utc_now_iso())
        self._table(table).append(stored)
        return copy.deepcopy(stored)

    def update(self, table, values, filters):
        updated = []
        for row in self._table(table):
            if _matches(row, filters):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        return updated

    def upsert(self, table, row, on_conflict="id"):
        keys = [k.strip() for k in on_conflict.split(",") if k.strip()]
        if all(row.get(k) is not None for k in keys):
            existing = self.update(table, row, {k: row[k] for k in keys})
            if existing:
                return existing[0]
        return self.insert(table, row)

    def delete(self, table, filters=None):
        rows = self._table(table)
        kept = [row for row in rows if not _matches(row, filters)]
        removed = len(rows) - len(kept)
        self._tables[table] = kept
        return removed

    def count(self, table: str, filters: Filters = None) -> int:
        return len([row for row in self._table(table) if _matches(row, filters)])
