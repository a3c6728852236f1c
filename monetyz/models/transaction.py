"""
Transaction Models for Monetyz

A transaction is one of three variants: income, expense or transfer.

DESIGN DECISION: Each variant is its own Pydantic model and the three are
joined in a discriminated union on `type`. A transfer simply has no
`category` or `account` field, so a transfer with a category cannot be
built. The flat row shape used by remote storage lives in the storage
layer, not here.

Transactions are frozen. There is no update operation; a correction is a
delete followed by a new transaction.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


DEFAULT_CATEGORY = "Uncategorized"


def new_transaction_id() -> str:
    """Client-generated unique transaction id."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, Enum):
    """Supported transaction variants."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionBase(BaseModel):
    """Fields shared by every variant."""
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
    )
    
    id: str = Field(
        default_factory=new_transaction_id,
        min_length=1,
        description="Unique, client-generated id"
    )
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Strictly positive amount, rounded only for display"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free-text note"
    )
    date: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Calendar day, YYYY-MM-DD"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation instant, used for newest-first ordering"
    )
    
    @field_validator('note', mode='before')
    @classmethod
    def blank_note_is_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None
    
    @field_validator('date')
    @classmethod
    def validate_calendar_day(cls, v: str) -> str:
        """Reject strings shaped like a date that are not one (e.g. 2024-02-30)."""
        date.fromisoformat(v)
        return v
    
    @property
    def month(self) -> str:
        """YYYY-MM prefix of the transaction date."""
        return self.date[:7]
    
    def in_month(self, month: str) -> bool:
        return self.date.startswith(month)


class CategorizedTransaction(TransactionBase):
    """Income and expense: a single account plus a category."""
    
    account: str = Field(
        ...,
        min_length=1,
        description="Account the money lands in or is spent from"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Category label"
    )
    
    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v):
        if v is None:
            return DEFAULT_CATEGORY
        return str(v).strip() or DEFAULT_CATEGORY
    
    def involves(self, account: str) -> bool:
        return self.account == account


class IncomeTransaction(CategorizedTransaction):
    """Money arriving in an account."""
    type: Literal["income"] = "income"


class ExpenseTransaction(CategorizedTransaction):
    """Money leaving an account."""
    type: Literal["expense"] = "expense"


class TransferTransaction(TransactionBase):
    """
    Money moving between two of the user's own accounts.
    
    CRITICAL: `from_account` and `to_account` must differ.
    """
    type: Literal["transfer"] = "transfer"
    
    from_account: str = Field(
        ...,
        min_length=1,
        description="Account debited"
    )
    to_account: str = Field(
        ...,
        min_length=1,
        description="Account credited"
    )
    
    @model_validator(mode='after')
    def validate_endpoints(self) -> 'TransferTransaction':
        if self.from_account == self.to_account:
            raise ValueError("Transfer accounts must differ")
        return self
    
    def involves(self, account: str) -> bool:
        return account in (self.from_account, self.to_account)


Transaction = Annotated[
    Union[IncomeTransaction, ExpenseTransaction, TransferTransaction],
    Field(discriminator="type"),
]

TransactionAdapter: TypeAdapter = TypeAdapter(Transaction)
TransactionListAdapter: TypeAdapter = TypeAdapter(list[Transaction])


def newest_first(transactions) -> list:
    """Sort by creation instant, newest first (stable for equal instants)."""
    return sorted(transactions, key=lambda tx: tx.created_at, reverse=True)
