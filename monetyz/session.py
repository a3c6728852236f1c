"""
Session Orchestrator for Monetyz

This module ties the stores, the migration protocol, the account registry
and the aggregation engine together for one "session": either signed out
(local storage) or signed in as one identity (remote storage).

DESIGN DECISION: The session owns the degraded-mode policy:
- Remote read fails at activation -> show local data, add a warning
- Remote insert/delete fails      -> write locally instead, add a warning
- Accounts loaded from local      -> account changes stay local until the
                                     next activation reads the cloud again
- Migration fails                 -> log it, keep going with the remote read;
                                     the flag stays unset so it is retried
Validation errors are the only thing that propagates out of a mutation,
and they are raised before anything is written.
"""

from enum import Enum
from typing import Optional, Sequence, Union

from pydantic import BaseModel, Field

from monetyz.accounts.registry import DEFAULT_ACCOUNTS, AccountRegistry
from monetyz.config import get_settings
from monetyz.config.settings import Settings
from monetyz.log import configure_logging, get_logger
from monetyz.models.account import Account
from monetyz.models.summary import MonthlySummary
from monetyz.models.transaction import DEFAULT_CATEGORY, Transaction, TransactionType
from monetyz.queries.aggregation import ALL_ACCOUNTS, summarize_month
from monetyz.services.migration import (
    LocalToRemoteMigration,
    MigrationError,
    MigrationResult,
)
from monetyz.services.rules import CategoryRuleBook
from monetyz.services.storage.google_sheets import GoogleSheetsClient
from monetyz.services.storage.interface import KeyValueStore, RemoteError, RowCollection
from monetyz.services.storage.local import (
    JsonFileKeyValueStore,
    LocalAccountStore,
    LocalRuleStore,
    LocalTransactionStore,
    MigrationFlagStore,
)
from monetyz.services.storage.remote import RemoteAccountStore, RemoteTransactionStore
from monetyz.validation.validator import build_transaction


logger = get_logger(__name__)


class DataSource(str, Enum):
    """Which store the returned transaction list came from."""
    LOCAL = "local"
    REMOTE = "remote"


class SessionResult(BaseModel):
    """Current transactions after a load or mutation, plus anything the user should know."""
    
    source: DataSource
    transactions: list[Transaction] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    migration: Optional[MigrationResult] = None


class FinanceSession:
    """
    One user's view of their ledger.
    
    Pass remote stores to get a signed-in session; omit them for signed out.
    """
    
    def __init__(
        self,
        local_transactions: LocalTransactionStore,
        migration_flags: MigrationFlagStore,
        local_accounts: LocalAccountStore,
        rules: Optional[CategoryRuleBook] = None,
        remote_transactions: Optional[RemoteTransactionStore] = None,
        remote_accounts: Optional[RemoteAccountStore] = None,
        top_n: int = 6,
        seed_names: Sequence[str] = DEFAULT_ACCOUNTS,
        default_category: str = DEFAULT_CATEGORY,
    ):
        self._local = local_transactions
        self._flags = migration_flags
        self._local_accounts = local_accounts
        self._remote = remote_transactions
        self._remote_accounts = remote_accounts
        self._top_n = top_n
        self._seed_names = list(seed_names)
        self._default_category = default_category
        # False while the registry was loaded from the local fallback
        self._accounts_remote = False
        
        self.rules = rules or CategoryRuleBook()
        self.registry = AccountRegistry(seed_names=self._seed_names)
        self.transactions: list[Transaction] = []
        self.source = DataSource.LOCAL
    
    @property
    def user_id(self) -> Optional[str]:
        return self._remote.user_id if self._remote else None
    
    @property
    def signed_in(self) -> bool:
        return self._remote is not None
    
    def _result(self, source: DataSource, warnings: list[str], migration=None) -> SessionResult:
        self.source = source
        return SessionResult(
            source=source,
            transactions=list(self.transactions),
            warnings=warnings,
            migration=migration,
        )
    
    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    
    async def activate(self) -> SessionResult:
        """
        Load accounts and transactions for this session.
        
        Signed in: run the one-time migration first (failure is logged and
        swallowed), then read remote; a failed read falls back to local data.
        """
        warnings = await self._load_accounts()
        
        if not self.signed_in:
            self.transactions = self._local.load()
            return self._result(DataSource.LOCAL, warnings)
        
        migration = None
        try:
            migration = await LocalToRemoteMigration(self._local, self._remote, self._flags).run()
            if migration.did_migrate:
                logger.info("local_transactions_migrated", user_id=self.user_id, count=migration.transferred)
        except MigrationError as e:
            logger.error("migration_error", user_id=self.user_id, error=str(e))
        
        try:
            self.transactions = await self._remote.list()
        except RemoteError as e:
            logger.warning("remote_load_failed", user_id=self.user_id, error=str(e))
            warnings.append("Cloud sync load failed. Using local data for now.")
            self.transactions = self._local.load()
            return self._result(DataSource.LOCAL, warnings, migration)
        
        return self._result(DataSource.REMOTE, warnings, migration)
    
    async def _load_accounts(self) -> list[str]:
        warnings = []
        accounts: list[Account] = []
        loaded_remote = False
        
        if self._remote_accounts is not None:
            try:
                accounts = await self._remote_accounts.load()
                loaded_remote = True
            except RemoteError as e:
                logger.warning("remote_accounts_load_failed", user_id=self.user_id, error=str(e))
                warnings.append("Could not load accounts from the cloud. Using local accounts.")
        
        if not loaded_remote:
            accounts = self._local_accounts.load()
        
        self.registry = AccountRegistry(accounts, seed_names=self._seed_names)
        self._accounts_remote = loaded_remote
        if not loaded_remote and self.registry.ensure_seed():
            self._local_accounts.save(self.registry.accounts)
        
        if self._remote is not None:
            self._remote.fallback_accounts = self.registry.names
        return warnings
    
    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    
    async def add_transaction(
        self,
        tx_type: Union[TransactionType, str],
        amount: Union[str, int, float],
        account: Optional[str] = None,
        from_account: Optional[str] = None,
        to_account: Optional[str] = None,
        category: Optional[str] = None,
        note: Optional[str] = None,
        tx_date: Optional[str] = None,
    ) -> SessionResult:
        """
        Validate and persist a new transaction.
        
        Raises:
            ValidationError: Before anything is written, if the input is invalid
        """
        tx = build_transaction(
            tx_type,
            amount,
            account=account,
            from_account=from_account,
            to_account=to_account,
            category=category,
            note=note,
            tx_date=tx_date,
            rules=self.rules,
            default_category=self._default_category,
        )
        
        if self.signed_in:
            try:
                await self._remote.insert(tx)
                self.transactions = await self._remote.list()
                return self._result(DataSource.REMOTE, [])
            except RemoteError as e:
                logger.warning("remote_insert_failed", user_id=self.user_id, tx_id=tx.id, error=str(e))
                self.transactions = self._local.add(tx)
                return self._result(DataSource.LOCAL, ["Cloud save failed. Saved locally instead."])
        
        self.transactions = self._local.add(tx)
        return self._result(DataSource.LOCAL, [])
    
    async def delete_transaction(self, transaction_id: str) -> SessionResult:
        """Delete a transaction by id from the session's store."""
        if self.signed_in:
            try:
                await self._remote.delete_by_id(transaction_id)
                self.transactions = await self._remote.list()
                return self._result(DataSource.REMOTE, [])
            except RemoteError as e:
                logger.warning("remote_delete_failed", user_id=self.user_id, tx_id=transaction_id, error=str(e))
                self.transactions = self._local.delete_by_id(transaction_id)
                return self._result(DataSource.LOCAL, ["Cloud delete failed. Deleted locally instead."])
        
        self.transactions = self._local.delete_by_id(transaction_id)
        return self._result(DataSource.LOCAL, [])
    
    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    
    async def _save_accounts(self) -> list[str]:
        accounts = self.registry.accounts
        if self._remote_accounts is not None and not self._accounts_remote:
            # A remote save mirrors the registry and would delete rows
            # missing from this fallback list
            self._local_accounts.save(accounts)
            return ["Accounts could not be synced with the cloud. Saved locally instead."]
        
        if self._remote_accounts is not None:
            try:
                await self._remote_accounts.save(accounts)
                if self._remote is not None:
                    self._remote.fallback_accounts = self.registry.names
                return []
            except RemoteError as e:
                logger.warning("remote_accounts_save_failed", user_id=self.user_id, error=str(e))
                self._local_accounts.save(accounts)
                return ["Could not save accounts to the cloud. Saved locally instead."]
        
        self._local_accounts.save(accounts)
        return []
    
    async def add_account(self, name: str) -> list[str]:
        """Add an account and persist the registry. Returns warnings."""
        self.registry.add(name)
        return await self._save_accounts()
    
    async def remove_account(self, name: str) -> list[str]:
        self.registry.remove(name)
        return await self._save_accounts()
    
    async def set_primary(self, name: str) -> list[str]:
        self.registry.set_primary(name)
        return await self._save_accounts()
    
    async def move_account(self, name: str, direction: Union[int, str]) -> list[str]:
        if not self.registry.move(name, direction):
            return []
        return await self._save_accounts()
    
    # ------------------------------------------------------------------
    # Figures
    # ------------------------------------------------------------------
    
    def summary(self, month: str, account_filter: str = ALL_ACCOUNTS) -> MonthlySummary:
        """Monthly figures over the session's current transactions."""
        return summarize_month(
            self.transactions,
            month,
            account_filter=account_filter,
            accounts=self.registry.names,
            primary_account=self.registry.primary,
            top_n=self._top_n,
            default_category=self._default_category,
        )


def create_session(
    user_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    kv: Optional[KeyValueStore] = None,
    transactions_collection: Optional[RowCollection] = None,
    accounts_collection: Optional[RowCollection] = None,
) -> FinanceSession:
    """
    Factory function to build a session from configuration.
    
    Args:
        user_id: Signed-in identity, or None for signed out
        settings: Defaults to get_settings()
        kv: Local key-value backend; defaults to the configured JSON file
        transactions_collection: Remote `txs` collection; defaults to Google Sheets
        accounts_collection: Remote `accounts` collection; defaults to Google Sheets
        
    If remote storage is needed but not configured, the session is built
    signed out and the problem is logged.
    """
    settings = settings or get_settings()
    local_settings = settings.local
    app_settings = settings.app
    configure_logging(app_settings.log_level)
    kv = kv or JsonFileKeyValueStore(local_settings.resolved_path)
    
    local_kwargs = dict(
        local_transactions=LocalTransactionStore(kv, local_settings.transactions_key),
        migration_flags=MigrationFlagStore(kv, local_settings.migration_flag_prefix),
        local_accounts=LocalAccountStore(kv, local_settings.accounts_key),
        rules=CategoryRuleBook(LocalRuleStore(kv, local_settings.rules_key)),
        top_n=app_settings.breakdown_top_n,
        seed_names=app_settings.default_accounts_list,
        default_category=app_settings.default_category,
    )
    
    if user_id is None:
        return FinanceSession(**local_kwargs)
    
    if transactions_collection is None or accounts_collection is None:
        try:
            client = GoogleSheetsClient(settings.google_sheets)
            transactions_collection = transactions_collection or client.transactions_collection()
            accounts_collection = accounts_collection or client.accounts_collection()
        except Exception as e:
            # Storage not configured - continue signed out
            logger.warning("remote_storage_unavailable", user_id=user_id, error=str(e))
            return FinanceSession(**local_kwargs)
    
    seed = app_settings.default_accounts_list
    return FinanceSession(
        remote_transactions=RemoteTransactionStore(transactions_collection, user_id, seed[:2]),
        remote_accounts=RemoteAccountStore(accounts_collection, user_id, seed),
        **local_kwargs,
    )
