"""In-memory storage: one dict of rows per table, lost on restart.

Used by the test suite and for throwaway local sessions.
"""

from __future__ import annotations

import copy
from typing import Any

from story_builder.models import TABLES

from .base import Storage


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in TABLES}

    def _insert(self, table: str, row: dict[str, Any]) -> None:
        self._tables[table][row["id"]] = copy.deepcopy(row)

    def _get(self, table: str, row_id: str) -> dict[str, Any] | None:
        row = self._tables[table].get(row_id)
        return copy.deepcopy(row) if row is not None else None

    def _select(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(row)
            for row in self._tables[table].values()
            if all(row.get(k) == v for k, v in filters.items())
        ]

    def _update(self, table: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        row = self._tables[table].get(row_id)
        if row is None:
            return None
        row.update(copy.deepcopy(fields))
        return copy.deepcopy(row)

    def _delete(self, table: str, row_id: str) -> bool:
        return self._tables[table].pop(row_id, None) is not None
