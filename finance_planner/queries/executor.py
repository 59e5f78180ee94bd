"""
Query Engine

DESIGN DECISION: Filtering is a pure function over a snapshot of
transactions. The store is never mutated and never consulted mid-query, so
concurrent reads are always safe.

Every result is sorted by date, newest first. The sort is stable, so
transactions on the same day keep their insertion order.
"""

from datetime import date
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from finance_planner.ledger import LedgerStore
from finance_planner.models.ledger import (
    ALL_CATEGORIES,
    PeriodKey,
    Transaction,
    TransactionFilter,
)


FilterInput = Union[TransactionFilter, dict, None]


class QueryExecutionError(Exception):
    """The filter criteria could not be understood."""
    pass


def coerce_filter(criteria: FilterInput) -> TransactionFilter:
    """Accept a TransactionFilter, a mapping of its fields, or None."""
    if criteria is None:
        return TransactionFilter()
    if isinstance(criteria, TransactionFilter):
        return criteria
    try:
        return TransactionFilter.model_validate(criteria)
    except ValidationError as e:
        raise QueryExecutionError(f"Invalid transaction filter: {e}")


def matches(transaction: Transaction, criteria: TransactionFilter) -> bool:
    """True if every supplied predicate holds for the transaction."""
    day = transaction.transaction_date

    if criteria.year is not None:
        if day.year != criteria.year:
            return False
        if criteria.month is not None and day.month != criteria.month:
            return False

    if criteria.kind is not None and transaction.kind != criteria.kind:
        return False

    if criteria.category and criteria.category != ALL_CATEGORIES:
        if transaction.category != criteria.category:
            return False

    if criteria.date_range is not None and not criteria.date_range.contains(day):
        return False

    return True


def query(transactions: Iterable[Transaction], criteria: FilterInput = None) -> list[Transaction]:
    """
    Filter transactions and sort them newest first.

    Args:
        transactions: Source collection (not modified)
        criteria: Filter criteria

    Returns:
        New list of matching transactions
    """
    criteria = coerce_filter(criteria)
    filtered = [t for t in transactions if matches(t, criteria)]
    return sorted(filtered, key=lambda t: t.transaction_date, reverse=True)


class QueryEngine:
    """
    Runs filters against the store's current snapshot.

    GUARANTEES:
    - Only returns transactions that exist in the store
    - Never mutates the store
    - Empty list, not an error, when nothing matches
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def run(self, criteria: FilterInput = None) -> list[Transaction]:
        """Filter the current snapshot."""
        return query(self._store.transactions, criteria)

    def for_period(self, period: PeriodKey, **kwargs) -> list[Transaction]:
        """Transactions in one calendar month, with optional extra filters."""
        return self.run(TransactionFilter.for_period(period, **kwargs))

    def recent(self, limit: int = 5) -> list[Transaction]:
        """Most recent transactions across the whole ledger."""
        return self.run()[:limit]

    def describe(self, criteria: FilterInput = None) -> str:
        """Human-readable description of a filter."""
        criteria = coerce_filter(criteria)

        desc_parts = []
        if criteria.kind is not None:
            desc_parts.append(f"Listing {criteria.kind.value} transactions")
        else:
            desc_parts.append("Listing transactions")
        if criteria.category and criteria.category != ALL_CATEGORIES:
            desc_parts.append(f"category: {criteria.category}")
        if criteria.year is not None:
            if criteria.month is not None:
                desc_parts.append(f"in {date(criteria.year, criteria.month, 1).strftime('%B %Y')}")
            else:
                desc_parts.append(f"in {criteria.year}")
        if criteria.date_range is not None:
            range_str = self._date_range_str(criteria.date_range.start, criteria.date_range.end)
            if range_str:
                desc_parts.append(range_str)

        return " | ".join(desc_parts)

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"in {date_from.strftime('%B %Y')}"
            elif date_from.year == date_to.year:
                return f"from {date_from.strftime('%b')} to {date_to.strftime('%b %Y')}"
            else:
                return f"from {date_from.strftime('%b %Y')} to {date_to.strftime('%b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""
