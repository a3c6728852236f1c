"""
Data Models Package

This package contains all Pydantic models used by Monetyz.
Everything that is stored or aggregated conforms to these schemas.
"""

from monetyz.models.account import Account
from monetyz.models.rule import CategoryRule
from monetyz.models.summary import CategoryShare, ExpenseBreakdown, MonthlySummary
from monetyz.models.transaction import (
    DEFAULT_CATEGORY,
    ExpenseTransaction,
    IncomeTransaction,
    Transaction,
    TransactionAdapter,
    TransactionListAdapter,
    TransactionType,
    TransferTransaction,
    new_transaction_id,
    newest_first,
)

__all__ = [
    # Transaction models
    "DEFAULT_CATEGORY",
    "ExpenseTransaction",
    "IncomeTransaction",
    "Transaction",
    "TransactionAdapter",
    "TransactionListAdapter",
    "TransactionType",
    "TransferTransaction",
    "new_transaction_id",
    "newest_first",
    # Accounts and rules
    "Account",
    "CategoryRule",
    # Aggregation results
    "CategoryShare",
    "ExpenseBreakdown",
    "MonthlySummary",
]
