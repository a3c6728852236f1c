"""
Remote Per-User Stores

Every read filters on `user_id` and every written row carries it, so one
identity never sees another's rows (RLS-style isolation done client-side).

Failures of the underlying collection surface as RemoteError. The stores
never retry and never fall back; that decision belongs to the caller.
"""

from typing import Sequence

import pydantic

from monetyz.log import get_logger
from monetyz.models.account import Account
from monetyz.models.transaction import Transaction, newest_first
from monetyz.services.storage.interface import RowCollection
from monetyz.services.storage.rows import (
    account_to_row,
    row_to_account,
    row_to_transaction,
    transaction_to_row,
)


logger = get_logger(__name__)


class RemoteTransactionStore:
    """The `txs` collection, scoped to one identity."""
    
    def __init__(
        self,
        collection: RowCollection,
        user_id: str,
        fallback_accounts: Sequence[str] = ("Main", "Uni"),
    ):
        self._collection = collection
        self._user_id = user_id
        self.fallback_accounts = list(fallback_accounts)
    
    @property
    def user_id(self) -> str:
        return self._user_id
    
    async def list(self) -> list[Transaction]:
        """
        All of the user's transactions, newest first.
        
        Rows that cannot form a valid transaction are skipped and logged.
        
        Raises:
            RemoteError: If the query fails
        """
        rows = await self._collection.select(
            {"user_id": self._user_id},
            order_by="created_at",
            descending=True,
        )
        
        transactions = []
        for row in rows:
            try:
                transactions.append(row_to_transaction(row, self.fallback_accounts))
            except (pydantic.ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning("remote_row_skipped", row_id=row.get("id"), error=str(e))
        
        # Stored instants may differ in precision, so order on parsed values
        return newest_first(transactions)
    
    async def insert(self, tx: Transaction) -> None:
        """
        Insert one transaction.
        
        Raises:
            RemoteError: If the insert fails
        """
        await self._collection.insert([transaction_to_row(tx, self._user_id)])
    
    async def delete_by_id(self, transaction_id: str) -> int:
        """
        Delete the user's transaction with this id.
        
        Raises:
            RemoteError: If the delete fails
        """
        return await self._collection.delete({"id": transaction_id, "user_id": self._user_id})
    
    async def upsert_many(self, transactions: Sequence[Transaction]) -> None:
        """
        Bulk upsert keyed by id; re-submitting the same ids is harmless.
        
        Raises:
            RemoteError: If the write fails
        """
        rows = [transaction_to_row(tx, self._user_id) for tx in transactions]
        if rows:
            await self._collection.upsert(rows, key=("id",))


class RemoteAccountStore:
    """The `accounts` collection, scoped to one identity. Names are unique per user."""
    
    def __init__(
        self,
        collection: RowCollection,
        user_id: str,
        seed_names: Sequence[str] = ("Main", "Uni", "Gear"),
    ):
        self._collection = collection
        self._user_id = user_id
        self._seed_names = list(seed_names)
    
    async def load(self) -> list[Account]:
        """
        Load the user's accounts, seeding the defaults when there are none.
        
        Raises:
            RemoteError: If the query or the seed insert fails
        """
        rows = await self._collection.select({"user_id": self._user_id})
        if rows:
            return [row_to_account(row) for row in rows]
        
        seeded = [
            Account(name=name, sort_order=idx, is_primary=idx == 0)
            for idx, name in enumerate(self._seed_names)
        ]
        await self._collection.insert([account_to_row(a, self._user_id) for a in seeded])
        logger.info("remote_accounts_seeded", user_id=self._user_id, count=len(seeded))
        return seeded
    
    async def save(self, accounts: Sequence[Account]) -> None:
        """
        Make the remote rows match `accounts`.
        
        Upserts by (user_id, name) and deletes rows for names no longer present.
        
        Raises:
            RemoteError: If any write fails
        """
        await self._collection.upsert(
            [account_to_row(a, self._user_id) for a in accounts],
            key=("user_id", "name"),
        )
        
        keep = {a.name for a in accounts}
        existing = await self._collection.select({"user_id": self._user_id})
        for row in existing:
            if row.get("name") not in keep:
                await self._collection.delete({"user_id": self._user_id, "name": row.get("name")})
