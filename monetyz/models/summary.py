"""
Aggregation Result Models

These are read-only views produced by the aggregation engine.
Percentages are exact (0-100); rounding belongs to the display layer.
"""

from typing import Optional

from pydantic import BaseModel, Field

from monetyz.models.transaction import Transaction


class CategoryShare(BaseModel):
    """One category's share of the month's expenses."""
    
    category: str
    amount: float = Field(ge=0)
    pct: float = Field(
        ge=0,
        description="Percentage of total expense, 0 when total is 0"
    )


class ExpenseBreakdown(BaseModel):
    """
    Expense split by category.
    
    `top` holds the largest categories, `others` collapses the remainder
    (absent when the remainder is zero), `all` lists every category in the
    same descending order for detail views.
    """
    
    total: float = 0.0
    top: list[CategoryShare] = Field(default_factory=list)
    others: Optional[CategoryShare] = None
    all: list[CategoryShare] = Field(default_factory=list)


class MonthlySummary(BaseModel):
    """Everything the dashboard shows for one month and account filter."""
    
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    account_filter: str = "All"
    primary_account: Optional[str] = None
    
    # Totals over the account-filtered month
    income: float = 0.0
    expense: float = 0.0
    net_flow: float = 0.0
    available: float = 0.0
    savings: float = 0.0
    net_by_account: dict[str, float] = Field(default_factory=dict)
    
    # Balance strip, over the whole month regardless of the filter
    balances: dict[str, float] = Field(default_factory=dict)
    
    breakdown: ExpenseBreakdown = Field(default_factory=ExpenseBreakdown)
    
    # In-scope transactions, in the order they were given
    transactions: list[Transaction] = Field(default_factory=list)
