"""
Shared fixtures.

No real remote calls in tests: remote collections are in-memory, and
FailingRowCollection simulates an outage on selected operations.
"""

import asyncio
from typing import Optional, Sequence

import pytest

from monetyz.models.transaction import (
    ExpenseTransaction,
    IncomeTransaction,
    TransferTransaction,
)
from monetyz.services.storage import (
    InMemoryKeyValueStore,
    InMemoryRowCollection,
    LocalAccountStore,
    LocalTransactionStore,
    MigrationFlagStore,
    RemoteError,
    RowCollection,
)


class FailingRowCollection(RowCollection):
    """Delegates to an in-memory collection, raising RemoteError for operations in `fail_on`."""
    
    def __init__(self, fail_on: Sequence[str] = ("select", "insert", "upsert", "update", "delete")):
        self.inner = InMemoryRowCollection()
        self.fail_on = set(fail_on)
        self.calls: list[str] = []
    
    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise RemoteError(f"simulated {operation} failure")
    
    async def select(self, filters=None, order_by: Optional[str] = None, descending: bool = False):
        self._check("select")
        return await self.inner.select(filters, order_by, descending)
    
    async def insert(self, rows):
        self._check("insert")
        await self.inner.insert(rows)
    
    async def upsert(self, rows, key=("id",)):
        self._check("upsert")
        await self.inner.upsert(rows, key)
    
    async def update(self, values, filters):
        self._check("update")
        return await self.inner.update(values, filters)
    
    async def delete(self, filters):
        self._check("delete")
        return await self.inner.delete(filters)


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def local_store(kv):
    return LocalTransactionStore(kv)


@pytest.fixture
def flags(kv):
    return MigrationFlagStore(kv)


@pytest.fixture
def local_accounts(kv):
    return LocalAccountStore(kv)


@pytest.fixture
def txs_collection():
    return InMemoryRowCollection()


@pytest.fixture
def accounts_collection():
    return InMemoryRowCollection()


@pytest.fixture
def march_transactions():
    """Income 1000 -> Main, Expense 200 Main (Food), Transfer 300 Main -> Uni."""
    return [
        IncomeTransaction(amount=1000, account="Main", category="Salary", date="2024-03-01"),
        ExpenseTransaction(amount=200, account="Main", category="Food", date="2024-03-05"),
        TransferTransaction(amount=300, from_account="Main", to_account="Uni", date="2024-03-10"),
    ]


@pytest.fixture
def failing_collection():
    """Factory: failing_collection(fail_on=(...)) -> FailingRowCollection."""
    return FailingRowCollection
