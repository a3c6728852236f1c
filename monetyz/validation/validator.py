"""
Transaction Construction and Validation

DESIGN DECISION: Raw form input goes through exactly one entry point,
`build_transaction`, which either returns a fully valid transaction or
raises a ValidationError subclass. Nothing reaches a store otherwise.

Checks, in order:
1. Amount parses to a finite number > 0 (grouping commas stripped)
2. Date is a real YYYY-MM-DD day (defaults to today)
3. Required accounts are present; transfer endpoints differ
4. Category/note normalisation, with rule-based auto-categorisation
   for expenses left on the default category
"""

import math
from datetime import date
from typing import Optional, Union

import pydantic

from monetyz.models.transaction import (
    DEFAULT_CATEGORY,
    ExpenseTransaction,
    IncomeTransaction,
    Transaction,
    TransactionType,
    TransferTransaction,
)
from monetyz.validation.errors import (
    AccountNotFound,
    InvalidAmount,
    InvalidDate,
    InvalidTransferAccounts,
    ValidationError,
)


def parse_amount(raw: Union[str, int, float, None]) -> float:
    """
    Parse a user-entered amount.
    
    Accepts numbers or strings like " 1,250.50 ".
    
    Raises:
        InvalidAmount: If the value is not a finite number greater than zero
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount("Enter a valid amount")
    
    if isinstance(raw, str):
        cleaned = raw.replace(",", "").strip()
        if not cleaned:
            raise InvalidAmount("Enter a valid amount")
        try:
            value = float(cleaned)
        except (ValueError, OverflowError):
            raise InvalidAmount(f"Not a number: {raw!r}")
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError, OverflowError):
            raise InvalidAmount(f"Not a number: {raw!r}")
    
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    
    return value


def parse_date(raw: Optional[str]) -> str:
    """Validate a YYYY-MM-DD day, defaulting to today."""
    if raw is None or not str(raw).strip():
        return date.today().isoformat()
    
    value = str(raw).strip()
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise InvalidDate(f"Not a valid date: {raw!r}")
    
    # fromisoformat also accepts compact forms like 20240301
    if parsed.isoformat() != value:
        raise InvalidDate(f"Date must be YYYY-MM-DD: {raw!r}")
    return value


def _require_account(value: Optional[str], role: str) -> str:
    name = (value or "").strip()
    if not name:
        raise AccountNotFound(f"{role} account is required")
    return name


def build_transaction(
    tx_type: Union[TransactionType, str],
    amount: Union[str, int, float],
    account: Optional[str] = None,
    from_account: Optional[str] = None,
    to_account: Optional[str] = None,
    category: Optional[str] = None,
    note: Optional[str] = None,
    tx_date: Optional[str] = None,
    rules=None,
    default_category: str = DEFAULT_CATEGORY,
) -> Transaction:
    """
    Build a validated transaction from raw input.
    
    A fresh id and creation instant are assigned here.
    
    Args:
        tx_type: income, expense or transfer
        amount: Number or numeric string
        account: Account for income/expense
        from_account: Debited account for transfers
        to_account: Credited account for transfers
        category: Category for income/expense (blank -> default_category)
        note: Optional note (blank -> None)
        tx_date: YYYY-MM-DD, defaults to today
        rules: Optional CategoryRuleBook used to auto-fill expense categories
        default_category: Category used when none is given
        
    Raises:
        InvalidAmount, InvalidDate, InvalidTransferAccounts, AccountNotFound
    """
    try:
        tx_type = TransactionType(tx_type)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {tx_type!r}")
    
    value = parse_amount(amount)
    day = parse_date(tx_date)
    clean_note = (note or "").strip() or None
    
    try:
        if tx_type == TransactionType.TRANSFER:
            source = _require_account(from_account, "From")
            target = _require_account(to_account, "To")
            if source == target:
                raise InvalidTransferAccounts("Transfer: From and To can't be the same")
            return TransferTransaction(
                amount=value,
                from_account=source,
                to_account=target,
                note=clean_note,
                date=day,
            )
        
        final_category = (category or "").strip() or default_category
        if (
            tx_type == TransactionType.EXPENSE
            and rules is not None
            and final_category.lower() == default_category.lower()
        ):
            hit = rules.match(clean_note or "")
            if hit:
                final_category = hit
        
        model = IncomeTransaction if tx_type == TransactionType.INCOME else ExpenseTransaction
        return model(
            amount=value,
            account=_require_account(account, "Target"),
            category=final_category,
            note=clean_note,
            date=day,
        )
    except pydantic.ValidationError as e:
        # Field limits (e.g. note length) not covered by the checks above
        raise ValidationError(f"Invalid transaction: {e.errors()[0]['msg']}") from e
