"""In-memory RowCollection, for tests and offline use."""

import copy
from typing import Optional, Sequence

from monetyz.services.storage.interface import (
    DuplicateError,
    Row,
    RowCollection,
    row_matches,
    sort_rows,
)


class InMemoryRowCollection(RowCollection):
    """
    Rows held in a Python list, in insertion order.
    
    Rows are copied on the way in and out so callers can't mutate storage.
    """
    
    def __init__(self, rows: Optional[Sequence[Row]] = None):
        self.rows: list[Row] = [dict(r) for r in rows or []]
    
    async def select(
        self,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Row]:
        matched = [copy.deepcopy(r) for r in self.rows if row_matches(r, filters)]
        return sort_rows(matched, order_by, descending)
    
    async def insert(self, rows: Sequence[Row]) -> None:
        existing = {r.get("id") for r in self.rows if r.get("id") is not None}
        for row in rows:
            if row.get("id") is not None and row["id"] in existing:
                raise DuplicateError(f"Row already exists: {row['id']}")
        self.rows.extend(copy.deepcopy(r) for r in rows)
    
    async def upsert(self, rows: Sequence[Row], key: Sequence[str] = ("id",)) -> None:
        for row in rows:
            match = {column: row.get(column) for column in key}
            for idx, current in enumerate(self.rows):
                if row_matches(current, match):
                    merged = dict(current)
                    merged.update(copy.deepcopy(row))
                    self.rows[idx] = merged
                    break
            else:
                self.rows.append(copy.deepcopy(row))
    
    async def update(self, values: Row, filters: Row) -> int:
        count = 0
        for row in self.rows:
            if row_matches(row, filters):
                row.update(copy.deepcopy(values))
                count += 1
        return count
    
    async def delete(self, filters: Row) -> int:
        kept = [r for r in self.rows if not row_matches(r, filters)]
        count = len(self.rows) - len(kept)
        self.rows = kept
        return count
