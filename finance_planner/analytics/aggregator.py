"""
Aggregator

Category sums, monthly summaries, budget-vs-actual and the per-month series.

All results are computed from one snapshot of the store taken at call time,
so a summary never mixes data from before and after a concurrent mutation.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finance_planner.analytics.periods import Clock, current_period
from finance_planner.ledger import LedgerStore
from finance_planner.models.ledger import (
    BudgetStatus,
    CategoryTotal,
    MonthlySeriesEntry,
    MonthlySummary,
    PeriodKey,
    Transaction,
    TransactionFilter,
    TransactionKind,
)
from finance_planner.queries import query


ZERO = Decimal("0")


def sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def category_totals(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """
    Sum amounts per category, largest total first.

    Categories with equal totals keep the order in which they were first
    encountered.
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        totals[transaction.category] = totals.get(transaction.category, ZERO) + transaction.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=category, total=total) for category, total in ordered]


class Aggregator:
    """
    Read-only summaries over the ledger store.

    Args:
        store: The ledger to summarize
        clock: Source of "today" for the dashboard summary
        recent_limit: How many recent transactions a monthly summary carries
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock = date.today,
        recent_limit: int = 5,
    ):
        self._store = store
        self._clock = clock
        self._recent_limit = recent_limit

    category_totals = staticmethod(category_totals)

    def expenses_by_category(
        self,
        month: int,
        year: int,
        transactions: Optional[Iterable[Transaction]] = None,
    ) -> list[CategoryTotal]:
        """Expense totals per category for one month."""
        source = self._store.transactions if transactions is None else transactions
        expenses = query(source, TransactionFilter(
            month=month,
            year=year,
            kind=TransactionKind.EXPENSE,
        ))
        return category_totals(expenses)

    def monthly_summary(self, month: int, year: int) -> MonthlySummary:
        """
        Income, expenses and balance for one month.

        `recent_transactions` is the global recency list (not scoped to the
        month), matching what the dashboard shows.
        """
        snapshot = self._store.transactions
        in_month = query(snapshot, TransactionFilter(month=month, year=year))

        income = sum_amounts(t for t in in_month if t.kind == TransactionKind.INCOME)
        expenses = sum_amounts(t for t in in_month if t.kind == TransactionKind.EXPENSE)

        return MonthlySummary(
            period=PeriodKey(year, month),
            income=income,
            expenses=expenses,
            balance=income - expenses,
            recent_transactions=query(snapshot)[:self._recent_limit],
            expenses_by_category=self.expenses_by_category(month, year, snapshot),
        )

    def dashboard_summary(self) -> MonthlySummary:
        """Monthly summary for the clock's current month."""
        period = current_period(self._clock)
        return self.monthly_summary(period.month, period.year)

    def budget_summary(self, month: int, year: int) -> list[BudgetStatus]:
        """
        Budget vs actual for every configured budget, in budget order.

        A budget without spending in the month reports spent = 0.
        """
        snapshot = self._store.transactions
        spent_by_category = {
            entry.category: entry.total
            for entry in self.expenses_by_category(month, year, snapshot)
        }

        statuses = []
        for budget in self._store.budgets:
            spent = spent_by_category.get(budget.category, ZERO)
            statuses.append(BudgetStatus(
                category=budget.category,
                limit=budget.limit,
                spent=spent,
                remaining=budget.limit - spent,
            ))
        return statuses

    def monthly_series(self) -> list[MonthlySeriesEntry]:
        """
        One entry per (year, month) that has any transaction, newest first.

        Periods come from the data, so months without transactions are
        absent rather than zero-filled.
        """
        buckets: dict[PeriodKey, list[Transaction]] = {}
        for transaction in self._store.transactions:
            buckets.setdefault(transaction.period, []).append(transaction)

        series = []
        for period in sorted(buckets, reverse=True):
            transactions = buckets[period]
            income = sum_amounts(t for t in transactions if t.kind == TransactionKind.INCOME)
            expenses = sum_amounts(t for t in transactions if t.kind == TransactionKind.EXPENSE)
            series.append(MonthlySeriesEntry(
                period=period,
                income=income,
                expenses=expenses,
                savings=income - expenses,
                transaction_count=len(transactions),
            ))
        return series
