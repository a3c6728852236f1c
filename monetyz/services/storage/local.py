"""
Local (On-Device) Storage

DESIGN DECISION: Signed-out data lives in a single JSON file that behaves
like a browser's localStorage: string keys, string values, whole-value
writes. Every typed store below owns one key in that namespace.

TRADEOFFS:
- Each add/delete is load + save of the full list (fine for personal use)
- No locking; the caller guarantees a single writer
- Reads fail soft: a corrupt value reads as empty rather than raising,
  and a bad transaction entry is dropped without losing its neighbours
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import pydantic

from monetyz.log import get_logger
from monetyz.models.account import Account
from monetyz.models.rule import CategoryRule
from monetyz.models.transaction import Transaction, TransactionAdapter, TransactionListAdapter
from monetyz.services.storage.interface import KeyValueStore, StorageError


logger = get_logger(__name__)

_AccountListAdapter = pydantic.TypeAdapter(list[Account])


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local namespace, lost on exit. Used in tests."""
    
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
    
    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value
    
    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value namespace persisted as one JSON object on disk.
    
    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous contents intact.
    """
    
    def __init__(self, path: Path):
        self._path = Path(path)
    
    def _read_all(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("local_store_unreadable", path=str(self._path), error=str(e))
            return {}
        
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("local_store_corrupt", path=str(self._path), error=str(e))
            return {}
        
        if not isinstance(data, dict):
            logger.warning("local_store_corrupt", path=str(self._path), error="not an object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}
    
    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Failed to write local store {self._path}: {e}")
        
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write local store {self._path}: {e}")
        finally:
            # Left behind only when the replace did not happen
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as e:
                    logger.warning("local_store_tmp_cleanup_failed", path=tmp_path, error=str(e))
    
    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)
    
    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)
    
    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class LocalTransactionStore:
    """
    The signed-out transaction list, newest first, under one key.
    """
    
    def __init__(self, kv: KeyValueStore, key: str = "jft:txs:v1"):
        self._kv = kv
        self._key = key
    
    def load(self) -> list[Transaction]:
        """
        Load the stored list.
        
        Undecodable JSON or a non-list value reads as empty. Invalid
        entries are skipped one at a time and logged.
        """
        raw = self._kv.get_item(self._key)
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("local_transactions_unreadable", key=self._key, error=str(e))
            return []
        if not isinstance(entries, list):
            logger.warning("local_transactions_unreadable", key=self._key, error="not a list")
            return []
        
        transactions = []
        for entry in entries:
            try:
                transactions.append(TransactionAdapter.validate_python(entry))
            except pydantic.ValidationError as e:
                logger.warning(
                    "local_transaction_skipped",
                    key=self._key,
                    tx_id=entry.get("id") if isinstance(entry, dict) else None,
                    error_count=e.error_count(),
                )
        return transactions
    
    def save(self, transactions: list[Transaction]) -> None:
        """Replace the stored list wholesale."""
        payload = TransactionListAdapter.dump_json(list(transactions))
        self._kv.set_item(self._key, payload.decode("utf-8"))
    
    def add(self, transaction: Transaction) -> list[Transaction]:
        """Prepend a transaction (newest first) and return the new list."""
        transactions = self.load()
        transactions.insert(0, transaction)
        self.save(transactions)
        return transactions
    
    def delete_by_id(self, transaction_id: str) -> list[Transaction]:
        """Remove every entry with this id and return the new list."""
        transactions = [tx for tx in self.load() if tx.id != transaction_id]
        self.save(transactions)
        return transactions


class MigrationFlagStore:
    """
    Per-identity "local data already reconciled with remote" flag.
    
    Absent means False. "1" means done, and is never cleared automatically.
    """
    
    def __init__(self, kv: KeyValueStore, prefix: str = "txs_migrated_"):
        self._kv = kv
        self._prefix = prefix
    
    def _key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"
    
    def is_migrated(self, user_id: str) -> bool:
        return self._kv.get_item(self._key(user_id)) == "1"
    
    def mark_migrated(self, user_id: str) -> None:
        self._kv.set_item(self._key(user_id), "1")


class LocalRuleStore:
    """Category rules, in match order, under one key."""
    
    def __init__(self, kv: KeyValueStore, key: str = "monetyz_category_rules_v1"):
        self._kv = kv
        self._key = key
    
    def load(self) -> list[CategoryRule]:
        """Load rules, dropping entries without a keyword or category."""
        raw = self._kv.get_item(self._key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("local_rules_unreadable", key=self._key)
            return []
        if not isinstance(parsed, list):
            return []
        
        rules = []
        for item in parsed:
            if not isinstance(item, dict):
                continue
            keyword = str(item.get("keyword") or "").strip()
            category = str(item.get("category") or "").strip()
            if not keyword or not category:
                continue
            fields = {"keyword": keyword, "category": category}
            if item.get("id"):
                fields["id"] = str(item["id"])
            try:
                rules.append(CategoryRule(**fields))
            except pydantic.ValidationError:
                continue
        return rules
    
    def save(self, rules: list[CategoryRule]) -> None:
        self._kv.set_item(self._key, json.dumps([r.model_dump() for r in rules]))


class LocalAccountStore:
    """Signed-out account registry under one key."""
    
    def __init__(self, kv: KeyValueStore, key: str = "monetyz_accounts_v1"):
        self._kv = kv
        self._key = key
    
    def load(self) -> list[Account]:
        raw = self._kv.get_item(self._key)
        if not raw:
            return []
        try:
            return _AccountListAdapter.validate_json(raw)
        except pydantic.ValidationError:
            logger.warning("local_accounts_unreadable", key=self._key)
            return []
    
    def save(self, accounts: list[Account]) -> None:
        self._kv.set_item(self._key, _AccountListAdapter.dump_json(accounts).decode("utf-8"))
