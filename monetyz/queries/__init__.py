"""Aggregation package."""

from monetyz.queries.aggregation import (
    ALL_ACCOUNTS,
    OTHERS_CATEGORY,
    Ledger,
    expense_breakdown,
    filter_account,
    filter_month,
    net_balances,
    summarize_month,
)

__all__ = [
    "ALL_ACCOUNTS",
    "OTHERS_CATEGORY",
    "Ledger",
    "expense_breakdown",
    "filter_account",
    "filter_month",
    "net_balances",
    "summarize_month",
]
