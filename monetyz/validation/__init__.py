"""Input validation package."""

from monetyz.validation.errors import (
    AccountNotFound,
    CannotRemovePrimary,
    DuplicateAccount,
    DuplicateRule,
    InvalidAmount,
    InvalidDate,
    InvalidRule,
    InvalidTransferAccounts,
    ValidationError,
)
from monetyz.validation.validator import build_transaction, parse_amount, parse_date

__all__ = [
    "AccountNotFound",
    "CannotRemovePrimary",
    "DuplicateAccount",
    "DuplicateRule",
    "InvalidAmount",
    "InvalidDate",
    "InvalidRule",
    "InvalidTransferAccounts",
    "ValidationError",
    "build_transaction",
    "parse_amount",
    "parse_date",
]
