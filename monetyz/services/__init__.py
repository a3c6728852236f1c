"""Services package."""

from monetyz.services.migration import (
    LocalToRemoteMigration,
    MigrationError,
    MigrationResult,
    MigrationState,
)
from monetyz.services.rules import CategoryRuleBook
from monetyz.services.storage import (
    ConnectionError,
    DuplicateError,
    InMemoryKeyValueStore,
    InMemoryRowCollection,
    JsonFileKeyValueStore,
    KeyValueStore,
    LocalAccountStore,
    LocalRuleStore,
    LocalTransactionStore,
    MigrationFlagStore,
    RemoteAccountStore,
    RemoteError,
    RemoteTransactionStore,
    RowCollection,
    StorageError,
)

__all__ = [
    # Migration
    "LocalToRemoteMigration",
    "MigrationError",
    "MigrationResult",
    "MigrationState",
    # Rules
    "CategoryRuleBook",
    # Storage services
    "ConnectionError",
    "DuplicateError",
    "InMemoryKeyValueStore",
    "InMemoryRowCollection",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalAccountStore",
    "LocalRuleStore",
    "LocalTransactionStore",
    "MigrationFlagStore",
    "RemoteAccountStore",
    "RemoteError",
    "RemoteTransactionStore",
    "RowCollection",
    "StorageError",
]
