"""
Aggregation Engine

DESIGN DECISION: Aggregation is a set of pure functions over a transaction
list. Nothing here reads storage or mutates its input, and every figure the
dashboard shows comes from `summarize_month`.

Balances are kept in a Ledger: a mapping from account name to running
balance updated only through credit/debit. Any account name a transaction
mentions gets an entry, whether or not the registry knows it.

Results depend only on the multiset of transactions. Iteration order can
change which of two equal-sum categories is listed first, never a sum.
"""

from typing import Iterable, Optional, Sequence

from monetyz.models.summary import CategoryShare, ExpenseBreakdown, MonthlySummary
from monetyz.models.transaction import (
    DEFAULT_CATEGORY,
    ExpenseTransaction,
    IncomeTransaction,
    Transaction,
    TransferTransaction,
)


ALL_ACCOUNTS = "All"
OTHERS_CATEGORY = "Others"
DEFAULT_TOP_N = 6


class Ledger:
    """Running net balance per account name, in first-seen order."""
    
    def __init__(self, accounts: Iterable[str] = ()):
        self._balances: dict[str, float] = {}
        for name in accounts:
            self._balances.setdefault(name, 0.0)
    
    def credit(self, account: str, amount: float) -> None:
        self._balances[account] = self._balances.get(account, 0.0) + amount
    
    def debit(self, account: str, amount: float) -> None:
        self._balances[account] = self._balances.get(account, 0.0) - amount
    
    def apply(self, tx: Transaction) -> None:
        """Income credits, expense debits, transfer debits `from` and credits `to`."""
        if isinstance(tx, IncomeTransaction):
            self.credit(tx.account, tx.amount)
        elif isinstance(tx, ExpenseTransaction):
            self.debit(tx.account, tx.amount)
        elif isinstance(tx, TransferTransaction):
            self.debit(tx.from_account, tx.amount)
            self.credit(tx.to_account, tx.amount)
    
    def balance(self, account: str) -> float:
        return self._balances.get(account, 0.0)
    
    def total(self) -> float:
        return sum(self._balances.values())
    
    def as_dict(self) -> dict[str, float]:
        return dict(self._balances)


def filter_month(transactions: Iterable[Transaction], month: str) -> list[Transaction]:
    """Transactions whose date starts with the YYYY-MM `month` prefix."""
    return [tx for tx in transactions if tx.in_month(month)]


def filter_account(transactions: Iterable[Transaction], account_filter: str = ALL_ACCOUNTS) -> list[Transaction]:
    """
    "All" keeps everything; otherwise income/expense on that account and
    transfers with that account on either side.
    """
    if account_filter == ALL_ACCOUNTS:
        return list(transactions)
    return [tx for tx in transactions if tx.involves(account_filter)]


def net_balances(transactions: Iterable[Transaction], accounts: Iterable[str] = ()) -> dict[str, float]:
    """
    Net balance per account over `transactions`.
    
    Every name in `accounts` appears (0 if untouched), followed by any other
    account the transactions reference.
    """
    ledger = Ledger(accounts)
    for tx in transactions:
        ledger.apply(tx)
    return ledger.as_dict()


def _shares(items: Sequence[tuple[str, float]], total: float) -> list[CategoryShare]:
    return [
        CategoryShare(
            category=category,
            amount=amount,
            pct=(amount / total) * 100 if total > 0 else 0.0,
        )
        for category, amount in items
    ]


def expense_breakdown(
    transactions: Iterable[Transaction],
    top_n: int = DEFAULT_TOP_N,
    default_category: str = DEFAULT_CATEGORY,
) -> ExpenseBreakdown:
    """
    Group expenses by category, largest first.
    
    The first `top_n` categories are listed individually; the rest collapse
    into a single "Others" entry, emitted only when its sum is positive.
    """
    by_category: dict[str, float] = {}
    for tx in transactions:
        if isinstance(tx, ExpenseTransaction):
            category = tx.category or default_category
            by_category[category] = by_category.get(category, 0.0) + tx.amount
    
    # sorted() is stable: ties keep first-seen order
    items = sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    total = sum(amount for _, amount in items)
    
    rest = sum(amount for _, amount in items[top_n:])
    others = None
    if rest > 0:
        others = _shares([(OTHERS_CATEGORY, rest)], total)[0]
    
    return ExpenseBreakdown(
        total=total,
        top=_shares(items[:top_n], total),
        others=others,
        all=_shares(items, total),
    )


def summarize_month(
    transactions: Sequence[Transaction],
    month: str,
    account_filter: str = ALL_ACCOUNTS,
    accounts: Sequence[str] = (),
    primary_account: Optional[str] = None,
    top_n: int = DEFAULT_TOP_N,
    default_category: str = DEFAULT_CATEGORY,
) -> MonthlySummary:
    """
    Reduce a transaction list to the figures for one month.
    
    Args:
        transactions: Any order; only the month's entries are used
        month: YYYY-MM
        account_filter: "All" or an account name
        accounts: Registry names, in display order
        primary_account: Defaults to the first registry name, then "Main"
        top_n: Categories listed before "Others"
        default_category: Bucket for expenses without a category
        
    Totals (income, expense, net flow, available, savings) use the
    account-filtered month. `balances` always covers the whole month.
    """
    primary = primary_account or (accounts[0] if accounts else "Main")
    
    month_all = filter_month(transactions, month)
    scoped = filter_account(month_all, account_filter)
    
    income = sum(tx.amount for tx in scoped if isinstance(tx, IncomeTransaction))
    expense = sum(tx.amount for tx in scoped if isinstance(tx, ExpenseTransaction))
    
    scoped_net = net_balances(scoped)
    available = scoped_net.get(primary, 0.0)
    savings = sum(value for name, value in scoped_net.items() if name != primary)
    
    return MonthlySummary(
        month=month,
        account_filter=account_filter,
        primary_account=primary,
        income=income,
        expense=expense,
        net_flow=income - expense,
        available=available,
        savings=savings,
        net_by_account=scoped_net,
        balances=net_balances(month_all, accounts),
        breakdown=expense_breakdown(scoped, top_n, default_category),
        transactions=scoped,
    )
