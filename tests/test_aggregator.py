"""Tests for monthly summaries and budget-vs-actual."""

import pytest
from datetime import date
from decimal import Decimal

from finance_planner.analytics import Aggregator, category_totals
from finance_planner.models.ledger import PeriodKey


@pytest.fixture
def ledger(store, add):
    add(store, "income", date(2025, 3, 1), "3000", "Salary")
    add(store, "income", date(2025, 3, 15), "500", "Freelance")
    add(store, "expense", date(2025, 3, 2), "1200", "Rent")
    add(store, "expense", date(2025, 3, 5), "350", "Food")
    add(store, "expense", date(2025, 3, 10), "80", "Transportation")
    add(store, "expense", date(2025, 3, 12), "150", "Entertainment")
    add(store, "expense", date(2025, 2, 20), "90", "Food")
    add(store, "income", date(2025, 2, 1), "3000", "Salary")
    store.set_budget("Rent", Decimal("1200"))
    store.set_budget("Food", Decimal("400"))
    store.set_budget("Utilities", Decimal("150"))
    return store


class TestCategoryTotals:
    """Tests for category_totals."""

    def test_sorted_descending(self, ledger):
        """Test largest totals come first."""
        totals = category_totals(t for t in ledger.transactions if t.is_expense)
        assert [entry.category for entry in totals] == [
            "Rent", "Food", "Entertainment", "Transportation",
        ]
        assert totals[1].total == Decimal("440")

    def test_total_conservation(self, ledger):
        """Test the totals add up to the sum of the input amounts."""
        expenses = [t for t in ledger.transactions if t.is_expense]
        totals = category_totals(expenses)
        assert sum(entry.total for entry in totals) == sum(t.amount for t in expenses)

    def test_ties_keep_first_encounter_order(self, store, add):
        """Test equal totals stay in encounter order."""
        add(store, "expense", date(2025, 3, 1), "50", "Food")
        add(store, "expense", date(2025, 3, 1), "50", "Shopping")
        add(store, "expense", date(2025, 3, 1), "50", "Education")
        totals = category_totals(store.transactions)
        assert [entry.category for entry in totals] == ["Food", "Shopping", "Education"]

    def test_empty(self):
        """Test no transactions gives no totals."""
        assert category_totals([]) == []


class TestMonthlySummary:
    """Tests for monthly_summary and dashboard_summary."""

    def test_monthly_summary(self, ledger, clock):
        """Test income, expenses and balance for a month."""
        summary = Aggregator(ledger, clock).monthly_summary(3, 2025)
        assert summary.period == PeriodKey(2025, 3)
        assert summary.income == Decimal("3500")
        assert summary.expenses == Decimal("1780")
        assert summary.balance == Decimal("1720")
        assert summary.expenses_by_category[0].category == "Rent"

    def test_recent_transactions_are_global(self, ledger, clock):
        """Test the recent list is not scoped to the summarized month."""
        summary = Aggregator(ledger, clock, recent_limit=3).monthly_summary(2, 2025)
        assert len(summary.recent_transactions) == 3
        assert summary.recent_transactions[0].transaction_date == date(2025, 3, 15)

    def test_empty_month(self, ledger, clock):
        """Test a month without data gives zeros."""
        summary = Aggregator(ledger, clock).monthly_summary(7, 2020)
        assert summary.income == 0
        assert summary.expenses == 0
        assert summary.balance == 0
        assert summary.expenses_by_category == []

    def test_dashboard_uses_clock(self, ledger, clock):
        """Test the dashboard summarizes the clock's month."""
        summary = Aggregator(ledger, clock).dashboard_summary()
        assert summary.period == PeriodKey(2025, 3)
        assert summary.income == Decimal("3500")


class TestBudgetSummary:
    """Tests for budget_summary."""

    def test_budget_vs_actual(self, ledger, clock):
        """Test spent and remaining per budget."""
        statuses = {s.category: s for s in Aggregator(ledger, clock).budget_summary(3, 2025)}
        assert statuses["Rent"].spent == Decimal("1200")
        assert statuses["Rent"].remaining == Decimal("0")
        assert statuses["Food"].spent == Decimal("350")
        assert statuses["Food"].remaining == Decimal("50")

    def test_budget_without_spending(self, ledger, clock):
        """Test a budget with no spending reports zero spent."""
        statuses = {s.category: s for s in Aggregator(ledger, clock).budget_summary(3, 2025)}
        assert statuses["Utilities"].spent == 0
        assert statuses["Utilities"].remaining == Decimal("150")

    def test_overspent_budget(self, ledger, clock, add):
        """Test remaining goes negative when over the limit."""
        add(ledger, "expense", date(2025, 3, 20), "100", "Food")
        statuses = {s.category: s for s in Aggregator(ledger, clock).budget_summary(3, 2025)}
        assert statuses["Food"].remaining == Decimal("-50")
        assert statuses["Food"].is_over is True

    def test_remaining_is_limit_minus_spent(self, ledger, clock):
        """Test the remaining invariant for every budget."""
        for status in Aggregator(ledger, clock).budget_summary(2, 2025):
            assert status.remaining == status.limit - status.spent


class TestMonthlySeries:
    """Tests for monthly_series."""

    def test_two_periods_newest_first(self, ledger, clock):
        """Test one entry per period with data, newest first."""
        series = Aggregator(ledger, clock).monthly_series()
        assert [entry.period for entry in series] == [PeriodKey(2025, 3), PeriodKey(2025, 2)]
        assert series[0].transaction_count == 6
        assert series[1].income == Decimal("3000")
        assert series[1].expenses == Decimal("90")
        assert series[1].savings == Decimal("2910")

    def test_empty_ledger(self, store, clock):
        """Test no transactions gives an empty series."""
        assert Aggregator(store, clock).monthly_series() == []
