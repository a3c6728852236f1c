"""
Abstract Storage Interfaces

DESIGN DECISION: Two storage shapes exist, and each gets an interface.

1. KeyValueStore - synchronous, process-local, string values under string
   keys. Backs the signed-out transaction list, the migration flags and the
   category rules.
2. RowCollection - asynchronous, row-oriented remote collection with
   column-equality filters. Backs the signed-in `txs` and `accounts` data.

The interface is intentionally simple - we're not building a query engine.
Just the operations the ledger needs.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence


Row = dict[str, Any]


class KeyValueStore(ABC):
    """
    Durable string key-value namespace.
    
    Absent keys read as None. Writes replace the whole value.
    """
    
    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass
    
    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""
        pass
    
    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove `key` if present."""
        pass


class RowCollection(ABC):
    """
    Abstract remote collection of flat rows.
    
    Any remote implementation (Google Sheets, in-memory, a SQL table)
    must implement these methods. Filters are {column: value} equality
    matches combined with AND.
    """
    
    @abstractmethod
    async def select(
        self,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Row]:
        """
        Return rows matching all filters.
        
        Args:
            filters: Column-equality filters
            order_by: Column to sort by (missing values last)
            descending: Sort direction
            
        Raises:
            RemoteError: If the query fails
        """
        pass
    
    @abstractmethod
    async def insert(self, rows: Sequence[Row]) -> None:
        """
        Insert new rows.
        
        Raises:
            RemoteError: If the insert fails or a row with the same id exists
        """
        pass
    
    @abstractmethod
    async def upsert(self, rows: Sequence[Row], key: Sequence[str] = ("id",)) -> None:
        """
        Insert rows, replacing existing rows that match on all `key` columns.
        
        Raises:
            RemoteError: If the write fails
        """
        pass
    
    @abstractmethod
    async def update(self, values: Row, filters: Row) -> int:
        """
        Set `values` on every row matching `filters`.
        
        Returns:
            Number of rows updated
        """
        pass
    
    @abstractmethod
    async def delete(self, filters: Row) -> int:
        """
        Delete rows matching `filters`.
        
        Returns:
            Number of rows deleted
        """
        pass


def row_matches(row: Row, filters: Optional[Row]) -> bool:
    """Column-equality match shared by the collection implementations."""
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


def sort_rows(rows: list[Row], order_by: Optional[str], descending: bool) -> list[Row]:
    """Stable sort by one column with missing values last in either direction."""
    if not order_by:
        return rows
    present = [r for r in rows if r.get(order_by) is not None]
    missing = [r for r in rows if r.get(order_by) is None]
    present.sort(key=lambda r: r[order_by], reverse=descending)
    return present + missing


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class RemoteError(StorageError):
    """Remote transport, query or authorisation failure."""
    pass


class DuplicateError(RemoteError):
    """Attempted to insert a row whose id already exists."""
    pass


class ConnectionError(RemoteError):
    """Could not connect to the remote backend."""
    pass
