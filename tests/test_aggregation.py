"""Tests for the aggregation engine."""

import random

import pytest

from monetyz.models import ExpenseTransaction, IncomeTransaction, TransferTransaction
from monetyz.queries import (
    Ledger,
    expense_breakdown,
    filter_account,
    filter_month,
    net_balances,
    summarize_month,
)


ACCOUNTS = ["Main", "Uni", "Gear"]


def _expense(amount, category, account="Main", day="2024-03-15"):
    return ExpenseTransaction(amount=amount, account=account, category=category, date=day)


class TestMonthlySummary:
    """End-to-end figures for one month."""
    
    def test_reference_month(self, march_transactions):
        summary = summarize_month(march_transactions, "2024-03", accounts=ACCOUNTS, primary_account="Main")
        
        assert summary.income == 1000
        assert summary.expense == 200
        assert summary.net_flow == 800
        assert summary.available == 500
        assert summary.savings == 300
        assert summary.balances == {"Main": 500, "Uni": 300, "Gear": 0}
    
    def test_primary_defaults_to_first_account(self, march_transactions):
        summary = summarize_month(march_transactions, "2024-03", accounts=["Uni", "Main"])
        assert summary.primary_account == "Uni"
        assert summary.available == 300
        assert summary.savings == 500
    
    def test_other_months_are_ignored(self, march_transactions):
        april = IncomeTransaction(amount=999, account="Main", date="2024-04-01")
        summary = summarize_month(march_transactions + [april], "2024-03", accounts=ACCOUNTS)
        assert summary.income == 1000
        assert april not in summary.transactions
    
    def test_account_filter_scopes_totals_not_balances(self, march_transactions):
        gear = _expense(50, "Parts", account="Gear", day="2024-03-20")
        summary = summarize_month(
            march_transactions + [gear],
            "2024-03",
            account_filter="Uni",
            accounts=ACCOUNTS,
            primary_account="Main",
        )
        
        # Only the transfer touches Uni
        assert summary.income == 0
        assert summary.expense == 0
        assert summary.available == -300
        assert summary.savings == 300
        assert summary.balances == {"Main": 500, "Uni": 300, "Gear": -50}
        assert len(summary.transactions) == 1
    
    def test_empty_month(self):
        summary = summarize_month([], "2024-03", accounts=ACCOUNTS)
        assert summary.income == 0
        assert summary.available == 0
        assert summary.balances == {"Main": 0, "Uni": 0, "Gear": 0}
        assert summary.breakdown.all == []
        assert summary.breakdown.others is None


class TestBalances:
    """Tests for per-account net balances."""
    
    def test_transfers_conserve_money(self):
        transfers = [
            TransferTransaction(amount=a, from_account=f, to_account=t, date="2024-03-01")
            for a, f, t in [(100, "Main", "Uni"), (40, "Uni", "Gear"), (7.5, "Gear", "Main"), (1, "Main", "Gear")]
        ]
        balances = net_balances(transfers, ACCOUNTS)
        assert sum(balances.values()) == pytest.approx(0)
    
    def test_income_and_expense_change_total(self):
        ledger = Ledger(ACCOUNTS)
        ledger.apply(IncomeTransaction(amount=120, account="Uni", date="2024-03-01"))
        assert ledger.total() == pytest.approx(120)
        ledger.apply(_expense(20, "Food", account="Gear"))
        assert ledger.total() == pytest.approx(100)
    
    def test_unknown_accounts_accumulate(self):
        balances = net_balances(
            [TransferTransaction(amount=10, from_account="Main", to_account="Old Wallet", date="2024-03-01")],
            ACCOUNTS,
        )
        assert balances["Old Wallet"] == 10
        assert list(balances) == ["Main", "Uni", "Gear", "Old Wallet"]
    
    def test_unknown_account_counts_as_savings(self):
        txs = [IncomeTransaction(amount=10, account="Legacy", date="2024-03-01")]
        summary = summarize_month(txs, "2024-03", accounts=ACCOUNTS, primary_account="Main")
        assert summary.savings == 10
        assert summary.available == 0


class TestFilters:
    
    def test_month_prefix(self, march_transactions):
        assert filter_month(march_transactions, "2024-03") == march_transactions
        assert filter_month(march_transactions, "2024-0") == march_transactions
        assert filter_month(march_transactions, "2023-03") == []
    
    def test_account_filter_all(self, march_transactions):
        assert filter_account(march_transactions, "All") == march_transactions
    
    def test_account_filter_includes_both_transfer_sides(self, march_transactions):
        assert filter_account(march_transactions, "Main") == march_transactions
        assert filter_account(march_transactions, "Uni") == [march_transactions[2]]
        assert filter_account(march_transactions, "Gear") == []


class TestExpenseBreakdown:
    """Tests for the category breakdown."""
    
    def test_top_and_others(self):
        amounts = {"Rent": 500, "Food": 200, "Fuel": 100, "Fun": 80, "Gym": 60, "Books": 40, "Gifts": 15, "Misc": 5}
        breakdown = expense_breakdown([_expense(a, c) for c, a in amounts.items()])
        
        assert breakdown.total == 1000
        assert [s.category for s in breakdown.top] == ["Rent", "Food", "Fuel", "Fun", "Gym", "Books"]
        assert breakdown.others.category == "Others"
        assert breakdown.others.amount == 20
        assert breakdown.others.pct == pytest.approx(2.0)
        assert len(breakdown.all) == 8
        assert breakdown.top[0].pct == pytest.approx(50.0)
    
    def test_no_others_when_few_categories(self):
        breakdown = expense_breakdown([_expense(10, "Food"), _expense(5, "Fuel")])
        assert breakdown.others is None
        assert [s.category for s in breakdown.all] == ["Food", "Fuel"]
    
    def test_same_category_is_summed(self):
        breakdown = expense_breakdown([_expense(10, "Food"), _expense(5, "Food"), _expense(1, "Fuel")])
        assert breakdown.all[0].category == "Food"
        assert breakdown.all[0].amount == 15
    
    def test_income_and_transfers_ignored(self, march_transactions):
        breakdown = expense_breakdown(march_transactions)
        assert [(s.category, s.amount) for s in breakdown.all] == [("Food", 200)]
    
    def test_percentages_sum_to_hundred(self):
        rng = random.Random(7)
        txs = [_expense(rng.uniform(0.01, 500), f"Cat{rng.randint(0, 12)}") for _ in range(60)]
        breakdown = expense_breakdown(txs)
        assert sum(s.pct for s in breakdown.all) == pytest.approx(100.0)
    
    def test_top_n_is_configurable(self):
        breakdown = expense_breakdown([_expense(3, "A"), _expense(2, "B"), _expense(1, "C")], top_n=1)
        assert [s.category for s in breakdown.top] == ["A"]
        assert breakdown.others.amount == 3
    
    def test_ties_keep_first_seen_order(self):
        txs = [_expense(10, "Zeta"), _expense(10, "Alpha"), _expense(10, "Mid")]
        first = expense_breakdown(txs)
        second = expense_breakdown(txs)
        assert [s.category for s in first.all] == ["Zeta", "Alpha", "Mid"]
        assert first == second


class TestOrderIndependence:
    
    def test_shuffled_input_gives_same_figures(self, march_transactions):
        txs = march_transactions + [
            _expense(33, "Fuel", account="Gear"),
            _expense(12, "Food", account="Uni"),
            IncomeTransaction(amount=250, account="Uni", date="2024-03-20"),
            TransferTransaction(amount=80, from_account="Uni", to_account="Gear", date="2024-03-21"),
        ]
        baseline = summarize_month(txs, "2024-03", accounts=ACCOUNTS, primary_account="Main")
        
        rng = random.Random(42)
        for _ in range(10):
            shuffled = list(txs)
            rng.shuffle(shuffled)
            summary = summarize_month(shuffled, "2024-03", accounts=ACCOUNTS, primary_account="Main")
            
            assert summary.income == pytest.approx(baseline.income)
            assert summary.expense == pytest.approx(baseline.expense)
            assert summary.available == pytest.approx(baseline.available)
            assert summary.savings == pytest.approx(baseline.savings)
            for name, value in baseline.balances.items():
                assert summary.balances[name] == pytest.approx(value)
            assert {s.category: s.amount for s in summary.breakdown.all} == pytest.approx(
                {s.category: s.amount for s in baseline.breakdown.all}
            )
