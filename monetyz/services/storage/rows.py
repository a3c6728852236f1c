"""
Row Mapping for Remote Collections

Translates between the transaction/account models and the flat rows stored
remotely. A `txs` row carries both column groups; whichever does not apply
to the row's type is null:

    income/expense -> account, category      (from_account, to_account null)
    transfer       -> from_account, to_account (account, category null)
"""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from monetyz.models.account import Account
from monetyz.models.transaction import (
    DEFAULT_CATEGORY,
    ExpenseTransaction,
    IncomeTransaction,
    Transaction,
    TransferTransaction,
    utc_now,
)
from monetyz.services.storage.interface import Row


TX_COLUMNS = [
    "id",
    "user_id",
    "type",
    "account",
    "from_account",
    "to_account",
    "category",
    "amount",
    "note",
    "date",
    "created_at",
]

ACCOUNT_COLUMNS = [
    "id",
    "user_id",
    "name",
    "created_at",
    "sort_order",
    "is_primary",
]


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse a stored instant; naive values are taken as UTC. None if unparsable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def transaction_to_row(tx: Transaction, user_id: str) -> Row:
    """Convert a transaction to a `txs` row owned by `user_id`."""
    row = {
        "id": tx.id,
        "user_id": user_id,
        "type": tx.type,
        "account": None,
        "from_account": None,
        "to_account": None,
        "category": None,
        "amount": tx.amount,
        "note": tx.note,
        "date": tx.date,
        "created_at": tx.created_at.isoformat(),
    }
    if isinstance(tx, TransferTransaction):
        row["from_account"] = tx.from_account
        row["to_account"] = tx.to_account
    else:
        row["account"] = tx.account
        row["category"] = tx.category
    return row


def row_to_transaction(row: Row, fallback_accounts: Sequence[str] = ("Main", "Uni")) -> Transaction:
    """
    Convert a `txs` row to a transaction.
    
    Legacy rows are tolerated: an unparsable `created_at` becomes "now",
    and missing accounts fall back to the first two registry accounts.
    
    Raises:
        pydantic.ValidationError: If the row cannot form a valid transaction
        ValueError: If the row has an unknown type
    """
    first = fallback_accounts[0] if fallback_accounts else "Main"
    second = fallback_accounts[1] if len(fallback_accounts) > 1 else "Uni"
    
    created_at = parse_instant(row.get("created_at")) or utc_now()
    common = {
        "id": str(row["id"]),
        "amount": float(row["amount"]),
        "note": row.get("note") or None,
        "date": str(row["date"]),
        "created_at": created_at,
    }
    
    if row.get("type") == "transfer":
        return TransferTransaction(
            from_account=row.get("from_account") or first,
            to_account=row.get("to_account") or second,
            **common,
        )
    
    models = {"income": IncomeTransaction, "expense": ExpenseTransaction}
    model = models.get(row.get("type"))
    if model is None:
        raise ValueError(f"Unknown transaction type: {row.get('type')!r}")
    return model(
        account=row.get("account") or first,
        category=row.get("category") or DEFAULT_CATEGORY,
        **common,
    )


def account_to_row(account: Account, user_id: str) -> Row:
    return {
        "id": account.id,
        "user_id": user_id,
        "name": account.name,
        "created_at": account.created_at.isoformat(),
        "sort_order": account.sort_order,
        "is_primary": account.is_primary,
    }


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def row_to_account(row: Row) -> Account:
    sort_order = row.get("sort_order")
    fields = {
        "name": str(row["name"]),
        "sort_order": int(sort_order) if sort_order not in (None, "") else None,
        "is_primary": _parse_flag(row.get("is_primary")),
        "created_at": parse_instant(row.get("created_at")) or utc_now(),
    }
    if row.get("id"):
        fields["id"] = str(row["id"])
    return Account(**fields)
