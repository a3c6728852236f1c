"""Tests for the session orchestrator and its degraded-mode policy."""

import pytest

from monetyz.config import Settings
from monetyz.models import Account
from monetyz.services.migration import MigrationState
from monetyz.services.storage import (
    InMemoryKeyValueStore,
    LocalTransactionStore,
    RemoteAccountStore,
    RemoteTransactionStore,
)
from monetyz.services.storage.rows import account_to_row
from monetyz.session import DataSource, FinanceSession, create_session
from monetyz.validation import InvalidAmount, InvalidTransferAccounts


USER = "user-1"


@pytest.fixture
def signed_out(local_store, flags, local_accounts):
    return FinanceSession(local_store, flags, local_accounts)


@pytest.fixture
def make_signed_in(local_store, flags, local_accounts, accounts_collection):
    """Factory: build a signed-in session over the given transactions collection."""
    def _make(collection, accounts=None):
        return FinanceSession(
            local_store,
            flags,
            local_accounts,
            remote_transactions=RemoteTransactionStore(collection, USER),
            remote_accounts=RemoteAccountStore(accounts or accounts_collection, USER),
        )
    return _make


class TestSignedOut:
    
    def test_activate_seeds_accounts_locally(self, run, signed_out, local_accounts):
        """First activation seeds and persists the default accounts."""
        result = run(signed_out.activate())
        
        assert result.source == DataSource.LOCAL
        assert result.transactions == []
        assert result.warnings == []
        assert signed_out.registry.names == ["Main", "Uni", "Gear"]
        assert [a.name for a in local_accounts.load()] == ["Main", "Uni", "Gear"]
        assert signed_out.user_id is None
    
    def test_add_and_delete(self, run, signed_out, local_store):
        """Mutations go straight to the local store."""
        run(signed_out.activate())
        
        result = run(signed_out.add_transaction("expense", "12.50", account="Main", category="Food", tx_date="2024-03-05"))
        assert result.source == DataSource.LOCAL
        assert len(result.transactions) == 1
        tx = result.transactions[0]
        assert tx.amount == 12.5
        assert local_store.load() == [tx]
        
        result = run(signed_out.delete_transaction(tx.id))
        assert result.transactions == []
        assert local_store.load() == []
    
    def test_newest_added_first(self, run, signed_out):
        """New transactions are prepended."""
        run(signed_out.activate())
        run(signed_out.add_transaction("income", 100, account="Main", tx_date="2024-03-01"))
        result = run(signed_out.add_transaction("income", 50, account="Uni", tx_date="2024-03-02"))
        
        assert [t.amount for t in result.transactions] == [50, 100]
    
    def test_invalid_input_writes_nothing(self, run, signed_out, local_store):
        """Validation errors propagate before persistence."""
        run(signed_out.activate())
        
        with pytest.raises(InvalidAmount):
            run(signed_out.add_transaction("expense", "-5", account="Main"))
        with pytest.raises(InvalidTransferAccounts):
            run(signed_out.add_transaction("transfer", 10, from_account="Main", to_account="Main"))
        
        assert local_store.load() == []
    
    def test_rules_categorise_expense(self, run, signed_out):
        """A matching rule sets the category of an uncategorised expense."""
        run(signed_out.activate())
        signed_out.rules.add("coffee", "Food")
        
        result = run(signed_out.add_transaction("expense", 4, account="Main", note="Morning Coffee"))
        assert result.transactions[0].category == "Food"
    
    def test_summary(self, run, signed_out, local_store, march_transactions):
        """Summary uses the session's transactions and registry."""
        local_store.save(march_transactions)
        run(signed_out.activate())
        
        summary = signed_out.summary("2024-03")
        assert summary.available == 500
        assert summary.savings == 300
        assert summary.balances == {"Main": 500, "Uni": 300, "Gear": 0}
        assert summary.primary_account == "Main"


class TestSignedIn:
    
    def test_activation_migrates_local_data(self, run, make_signed_in, txs_collection, local_store, flags, march_transactions):
        """Local transactions are copied to an empty remote store once."""
        local_store.save(march_transactions)
        session = make_signed_in(txs_collection)
        
        result = run(session.activate())
        
        assert result.source == DataSource.REMOTE
        assert result.migration.state == MigrationState.MIGRATED
        assert result.migration.transferred == 3
        assert {t.id for t in result.transactions} == {t.id for t in march_transactions}
        assert flags.is_migrated(USER)
        assert all(row["user_id"] == USER for row in txs_collection.rows)
        
        # Second activation does not copy again
        again = run(session.activate())
        assert again.migration.transferred == 0
        assert len(txs_collection.rows) == 3
    
    def test_remote_accounts_seeded(self, run, make_signed_in, txs_collection, accounts_collection):
        """An identity with no account rows gets the defaults remotely."""
        session = make_signed_in(txs_collection)
        run(session.activate())
        
        assert session.signed_in
        assert session.user_id == USER
        assert sorted(row["name"] for row in accounts_collection.rows) == ["Gear", "Main", "Uni"]
    
    def test_add_and_delete_remote(self, run, make_signed_in, txs_collection, local_store):
        """Mutations go to the remote store and refresh the list."""
        session = make_signed_in(txs_collection)
        run(session.activate())
        
        result = run(session.add_transaction("income", 250, account="Main", tx_date="2024-03-01"))
        assert result.source == DataSource.REMOTE
        assert len(txs_collection.rows) == 1
        assert local_store.load() == []
        
        result = run(session.delete_transaction(result.transactions[0].id))
        assert result.transactions == []
        assert txs_collection.rows == []


class TestDegradedMode:
    
    def test_remote_read_failure_uses_local(self, run, make_signed_in, failing_collection, local_store, march_transactions, flags):
        """A failed remote read shows local data with a warning."""
        local_store.save(march_transactions)
        collection = failing_collection(fail_on=("select",))
        session = make_signed_in(collection)
        
        result = run(session.activate())
        
        assert result.source == DataSource.LOCAL
        assert len(result.transactions) == 3
        assert "Cloud sync load failed. Using local data for now." in result.warnings
        # Migration could not read the remote store, so it will be retried
        assert result.migration is None
        assert not flags.is_migrated(USER)
    
    def test_migration_failure_is_swallowed(self, run, make_signed_in, failing_collection, local_store, march_transactions, flags):
        """A failed upload is logged; the session still loads remote data."""
        local_store.save(march_transactions)
        collection = failing_collection(fail_on=("upsert",))
        session = make_signed_in(collection)
        
        result = run(session.activate())
        
        assert result.source == DataSource.REMOTE
        assert result.transactions == []
        assert result.migration is None
        assert not flags.is_migrated(USER)
        assert len(local_store.load()) == 3
    
    def test_insert_failure_saves_locally(self, run, make_signed_in, failing_collection, local_store):
        """A failed remote insert writes to the local store instead."""
        collection = failing_collection(fail_on=("insert",))
        session = make_signed_in(collection)
        run(session.activate())
        
        result = run(session.add_transaction("expense", 20, account="Main", category="Food"))
        
        assert result.source == DataSource.LOCAL
        assert result.warnings == ["Cloud save failed. Saved locally instead."]
        assert len(local_store.load()) == 1
        assert collection.inner.rows == []
    
    def test_delete_failure_deletes_locally(self, run, make_signed_in, failing_collection, local_store):
        """A failed remote delete falls back to the local store."""
        collection = failing_collection(fail_on=("delete",))
        session = make_signed_in(collection)
        run(session.activate())
        
        added = run(session.add_transaction("income", 75, account="Main"))
        tx = added.transactions[0]
        local_store.add(tx)
        
        result = run(session.delete_transaction(tx.id))
        
        assert result.source == DataSource.LOCAL
        assert result.warnings == ["Cloud delete failed. Deleted locally instead."]
        assert local_store.load() == []
        assert len(collection.inner.rows) == 1
    
    def test_validation_precedes_remote_write(self, run, make_signed_in, failing_collection):
        """Invalid input never reaches the remote collection."""
        collection = failing_collection(fail_on=())
        session = make_signed_in(collection)
        run(session.activate())
        
        with pytest.raises(InvalidAmount):
            run(session.add_transaction("income", "abc", account="Main"))
        assert "insert" not in collection.calls
    
    def test_remote_accounts_failure_uses_local(self, run, make_signed_in, txs_collection, failing_collection, local_accounts):
        """Accounts fall back to the local registry when the remote one is unreachable."""
        accounts = failing_collection()
        session = make_signed_in(txs_collection, accounts=accounts)
        
        result = run(session.activate())
        
        assert any("accounts" in w for w in result.warnings)
        assert session.registry.names == ["Main", "Uni", "Gear"]
        assert [a.name for a in local_accounts.load()] == ["Main", "Uni", "Gear"]


class TestAccountOperations:
    
    def test_signed_out_changes_persist(self, run, signed_out, local_accounts):
        """Each account change is saved to the local store."""
        run(signed_out.activate())
        
        assert run(signed_out.add_account("Savings")) == []
        assert run(signed_out.set_primary("Uni")) == []
        assert run(signed_out.move_account("Savings", "up")) == []
        assert run(signed_out.remove_account("Main")) == []
        
        stored = local_accounts.load()
        assert [a.name for a in stored] == ["Uni", "Savings", "Gear"]
        assert [a.name for a in stored if a.is_primary] == ["Uni"]
    
    def test_signed_in_changes_persist_remotely(self, run, make_signed_in, txs_collection, accounts_collection):
        """Account changes are mirrored to the user's remote rows."""
        session = make_signed_in(txs_collection)
        run(session.activate())
        
        run(session.add_account("Savings"))
        run(session.remove_account("Gear"))
        
        assert sorted(row["name"] for row in accounts_collection.rows) == ["Main", "Savings", "Uni"]
        assert all(row["user_id"] == USER for row in accounts_collection.rows)
    
    def test_remote_save_failure_saves_locally(self, run, make_signed_in, txs_collection, failing_collection, local_accounts):
        """A failed remote account save is kept locally with a warning."""
        accounts = failing_collection(fail_on=("upsert",))
        session = make_signed_in(txs_collection, accounts=accounts)
        run(session.activate())
        
        warnings = run(session.add_account("Savings"))
        
        assert warnings == ["Could not save accounts to the cloud. Saved locally instead."]
        assert "Savings" in [a.name for a in local_accounts.load()]
    
    def test_move_at_boundary_saves_nothing(self, run, make_signed_in, txs_collection, failing_collection):
        """A no-op move does not touch the store."""
        accounts = failing_collection(fail_on=())
        session = make_signed_in(txs_collection, accounts=accounts)
        run(session.activate())
        accounts.calls.clear()
        
        assert run(session.move_account("Main", "up")) == []
        assert accounts.calls == []
    
    def test_fallback_accounts_never_overwrite_remote(self, run, make_signed_in, txs_collection, failing_collection, local_accounts):
        """Accounts loaded from the local fallback are not mirrored over the remote rows."""
        accounts = failing_collection(fail_on=("select",))
        accounts.inner.rows = [
            account_to_row(Account(name=name, sort_order=idx, is_primary=idx == 0), USER)
            for idx, name in enumerate(["Main", "Bank", "Cash"])
        ]
        session = make_signed_in(txs_collection, accounts=accounts)
        run(session.activate())
        assert session.registry.names == ["Main", "Uni", "Gear"]
        
        # The cloud is back, but the registry still holds the fallback list
        accounts.fail_on.clear()
        warnings = run(session.add_account("Savings"))
        
        assert warnings == ["Accounts could not be synced with the cloud. Saved locally instead."]
        assert sorted(row["name"] for row in accounts.inner.rows) == ["Bank", "Cash", "Main"]
        assert "upsert" not in accounts.calls
        assert "delete" not in accounts.calls
        assert "Savings" in [a.name for a in local_accounts.load()]
        
        # The next activation reads the real remote registry again
        run(session.activate())
        assert session.registry.names == ["Main", "Bank", "Cash"]
        assert run(session.add_account("Savings")) == []
        assert sorted(row["name"] for row in accounts.inner.rows) == ["Bank", "Cash", "Main", "Savings"]


class TestCreateSession:
    
    def test_signed_out(self, run):
        """Without an identity the session is local only."""
        kv = InMemoryKeyValueStore()
        session = create_session(settings=Settings(), kv=kv)
        
        assert not session.signed_in
        run(session.activate())
        assert session.registry.names == ["Main", "Uni", "Gear"]
    
    def test_signed_in_with_collections(self, run, txs_collection, accounts_collection):
        """Injected collections give a signed-in session."""
        kv = InMemoryKeyValueStore()
        session = create_session(
            user_id="u-42",
            settings=Settings(),
            kv=kv,
            transactions_collection=txs_collection,
            accounts_collection=accounts_collection,
        )
        
        assert session.signed_in
        assert session.user_id == "u-42"
        
        run(session.add_transaction("income", 10, account="Main"))
        assert txs_collection.rows[0]["user_id"] == "u-42"
    
    def test_uses_configured_keys(self, run, monkeypatch):
        """Local keys come from settings."""
        monkeypatch.setenv("MONETYZ_LOCAL_TRANSACTIONS_KEY", "custom:txs")
        kv = InMemoryKeyValueStore()
        session = create_session(settings=Settings(), kv=kv)
        
        run(session.activate())
        run(session.add_transaction("income", 10, account="Main"))
        
        assert len(LocalTransactionStore(kv, "custom:txs").load()) == 1
        assert kv.get_item("jft:txs:v1") is None
    
    def test_unconfigured_remote_falls_back(self, monkeypatch):
        """Missing remote configuration yields a signed-out session."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        
        session = create_session(user_id="u-42", settings=Settings(), kv=InMemoryKeyValueStore())
        
        assert not session.signed_in
    
    def test_default_category_from_settings(self, run, monkeypatch):
        """The configured default category reaches new transactions."""
        monkeypatch.setenv("DEFAULT_CATEGORY", "Misc")
        session = create_session(settings=Settings(), kv=InMemoryKeyValueStore())
        run(session.activate())
        
        result = run(session.add_transaction("expense", 3, account="Main"))
        assert result.transactions[0].category == "Misc"
    
    def test_configures_log_level(self, monkeypatch):
        """The configured log level is applied when a session is created."""
        levels = []
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setattr("monetyz.session.configure_logging", levels.append)
        
        create_session(settings=Settings(), kv=InMemoryKeyValueStore())
        assert levels == ["DEBUG"]
