"""Tests for transaction filtering."""

import pytest
from datetime import date

from finance_planner.models.ledger import DateRange, PeriodKey, TransactionFilter
from finance_planner.queries import QueryEngine, QueryExecutionError, query


@pytest.fixture
def ledger(store, add):
    add(store, "income", date(2025, 3, 1), "3000", "Salary")
    add(store, "expense", date(2025, 3, 2), "1200", "Rent")
    add(store, "expense", date(2025, 3, 5), "350", "Food")
    add(store, "expense", date(2025, 2, 28), "80", "Food")
    add(store, "expense", date(2024, 3, 10), "40", "Food")
    add(store, "income", date(2025, 3, 5), "500", "Freelance")
    return store


class TestQuery:
    """Tests for the query function and engine."""

    def test_no_filter_returns_all_newest_first(self, ledger):
        """Test an empty filter returns everything sorted by date."""
        results = QueryEngine(ledger).run()
        assert len(results) == 6
        dates = [t.transaction_date for t in results]
        assert dates == sorted(dates, reverse=True)

    def test_same_day_keeps_insertion_order(self, ledger):
        """Test the sort is stable for equal dates."""
        results = QueryEngine(ledger).run({"year": 2025, "month": 3})
        same_day = [t.category for t in results if t.transaction_date == date(2025, 3, 5)]
        assert same_day == ["Food", "Freelance"]

    def test_month_and_year(self, ledger):
        """Test a month filter returns exactly that calendar month."""
        results = QueryEngine(ledger).run(TransactionFilter(month=3, year=2025))
        assert len(results) == 4
        assert all(PeriodKey.of(t.transaction_date) == PeriodKey(2025, 3) for t in results)

    def test_year_only(self, ledger):
        """Test a year filter matches the whole year."""
        results = QueryEngine(ledger).run({"year": 2024})
        assert [t.amount for t in results] == [40]

    def test_kind_and_category(self, ledger):
        """Test combined kind and category predicates."""
        results = QueryEngine(ledger).run({"kind": "expense", "category": "Food"})
        assert len(results) == 3

    def test_all_category_means_no_filter(self, ledger):
        """Test the 'all' category sentinel."""
        assert len(QueryEngine(ledger).run({"category": "all"})) == 6

    def test_date_range_inclusive(self, ledger):
        """Test date range bounds are inclusive."""
        span = DateRange(start=date(2025, 2, 28), end=date(2025, 3, 2))
        results = QueryEngine(ledger).run(TransactionFilter(date_range=span))
        assert {t.transaction_date for t in results} == {
            date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 2),
        }

    def test_no_match_is_empty(self, ledger):
        """Test no matches gives an empty list, not an error."""
        assert QueryEngine(ledger).run({"category": "Travel"}) == []

    def test_month_without_year_rejected(self, ledger):
        """Test an ambiguous month filter raises."""
        with pytest.raises(QueryExecutionError):
            QueryEngine(ledger).run({"month": 3})

    def test_query_does_not_mutate_source(self, ledger):
        """Test the source collection is left untouched."""
        source = list(ledger.transactions)
        query(source, {"kind": "income"})
        assert source == list(ledger.transactions)

    def test_recent(self, ledger):
        """Test the recent list is capped and newest first."""
        recent = QueryEngine(ledger).recent(2)
        assert [t.transaction_date for t in recent] == [date(2025, 3, 5), date(2025, 3, 5)]

    def test_for_period(self, ledger):
        """Test the period shortcut with an extra filter."""
        results = QueryEngine(ledger).for_period(PeriodKey(2025, 2), kind="expense")
        assert [t.amount for t in results] == [80]


class TestDescribe:
    """Tests for filter descriptions."""

    def test_describe_month(self, store):
        """Test describing a month filter."""
        text = QueryEngine(store).describe({"kind": "expense", "category": "Food", "year": 2025, "month": 3})
        assert text == "Listing expense transactions | category: Food | in March 2025"

    def test_describe_range(self, store):
        """Test describing an open-ended date range."""
        text = QueryEngine(store).describe({"date_range": {"start": "2025-03-01"}})
        assert text == "Listing transactions | from 01 Mar 2025"
