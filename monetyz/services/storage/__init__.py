"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
local key-value persistence for signed-out use, and per-user remote row
collections (Google Sheets or in-memory) for signed-in use.
"""

from monetyz.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    KeyValueStore,
    RemoteError,
    Row,
    RowCollection,
    StorageError,
)
from monetyz.services.storage.local import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LocalAccountStore,
    LocalRuleStore,
    LocalTransactionStore,
    MigrationFlagStore,
)
from monetyz.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRowCollection,
)
from monetyz.services.storage.memory import InMemoryRowCollection
from monetyz.services.storage.remote import RemoteAccountStore, RemoteTransactionStore

__all__ = [
    # Interfaces
    "KeyValueStore",
    "Row",
    "RowCollection",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "RemoteError",
    "StorageError",
    # Local storage
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "LocalAccountStore",
    "LocalRuleStore",
    "LocalTransactionStore",
    "MigrationFlagStore",
    # Remote storage
    "GoogleSheetsClient",
    "GoogleSheetsRowCollection",
    "InMemoryRowCollection",
    "RemoteAccountStore",
    "RemoteTransactionStore",
]
