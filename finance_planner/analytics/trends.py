"""
Trend Analyzer

Multi-month views: category breakdowns with percentage shares over a
trailing window, and fixed 12-month trend lines for a single category.
"""

from datetime import date
from typing import Union

from finance_planner.analytics.aggregator import ZERO, category_totals, sum_amounts
from finance_planner.analytics.periods import Clock, current_period, trailing_periods
from finance_planner.ledger import LedgerStore
from finance_planner.models.ledger import (
    AnalysisPeriod,
    CategoryAnalysis,
    CategoryShare,
    TransactionFilter,
    TransactionKind,
    TrendPoint,
)
from finance_planner.queries import query


TREND_MONTHS = 12


class TrendAnalyzer:
    """
    Trend and share computations over the ledger store.

    Args:
        store: The ledger to analyze
        clock: Source of "today"; all windows end at the clock's month
    """

    def __init__(self, store: LedgerStore, clock: Clock = date.today):
        self._store = store
        self._clock = clock

    def category_analysis(
        self,
        kind: Union[TransactionKind, str],
        period: Union[AnalysisPeriod, str] = AnalysisPeriod.CURRENT,
    ) -> CategoryAnalysis:
        """
        Per-category totals and shares for one kind over a period.

        Bounded periods cover the current month plus the N-1 months before
        it. Percentages are 0 when the grand total is 0.
        """
        kind = TransactionKind(kind)
        period = AnalysisPeriod(period)
        snapshot = self._store.transactions

        if period.months is None:
            transactions = query(snapshot, TransactionFilter(kind=kind))
        else:
            transactions = []
            for month in reversed(trailing_periods(current_period(self._clock), period.months)):
                transactions.extend(query(snapshot, TransactionFilter.for_period(month, kind=kind)))

        totals = category_totals(transactions)
        grand_total = sum((entry.total for entry in totals), ZERO)

        categories = []
        for entry in totals:
            if grand_total > 0:
                percentage = float(entry.total / grand_total * 100)
            else:
                percentage = 0.0
            categories.append(CategoryShare(
                category=entry.category,
                total=entry.total,
                percentage=min(percentage, 100.0),
            ))

        return CategoryAnalysis(
            kind=kind,
            period=period,
            categories=categories,
            grand_total=grand_total,
        )

    def category_trend(
        self,
        category: str,
        kind: Union[TransactionKind, str] = TransactionKind.EXPENSE,
    ) -> list[TrendPoint]:
        """
        Twelve monthly totals for one category, oldest first.

        Months without matching transactions are present with total 0. The
        category is matched by name, so "all" is an ordinary category here.
        """
        kind = TransactionKind(kind)
        snapshot = self._store.transactions

        points = []
        for month in trailing_periods(current_period(self._clock), TREND_MONTHS):
            in_month = [
                t for t in query(snapshot, TransactionFilter.for_period(month, kind=kind))
                if t.category == category
            ]
            points.append(TrendPoint(
                period=month,
                label=month.label,
                total=sum_amounts(in_month),
            ))
        return points
