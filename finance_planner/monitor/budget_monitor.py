"""
Budget Monitor

Watches the ledger store and raises advisories when a recorded expense
pushes a category towards or past its monthly budget, or is large on its own.

CRITICAL: Advisories never reject or alter a transaction. The expense is
already in the store when the monitor sees it.
"""

from decimal import Decimal
from typing import Iterable, Optional

from finance_planner.analytics.aggregator import sum_amounts
from finance_planner.audit import AuditLogger
from finance_planner.config import LedgerSettings
from finance_planner.ledger import LedgerStore
from finance_planner.models.ledger import (
    Advisory,
    AdvisoryKind,
    Budget,
    LedgerMutation,
    MutationType,
    Transaction,
    TransactionFilter,
    TransactionKind,
    format_currency,
)
from finance_planner.queries import query


DEFAULT_WARNING_RATIO = Decimal("0.9")


def evaluate(
    transaction: Transaction,
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    settings: LedgerSettings,
    warning_ratio: Decimal = DEFAULT_WARNING_RATIO,
) -> list[Advisory]:
    """
    Advisories for one recorded transaction.

    Args:
        transaction: The transaction just recorded
        transactions: Ledger contents, including `transaction`
        budgets: Configured budgets
        settings: Ledger settings (alert toggles, threshold, currency)
        warning_ratio: Fraction of the limit at which spend is "approaching"

    Returns:
        Zero, one or two advisories; income never produces any
    """
    if not transaction.is_expense:
        return []

    notifications = settings.notifications
    symbol = settings.currency_symbol
    advisories = []

    if notifications.budget_alerts:
        budget = next((b for b in budgets if b.category == transaction.category), None)
        if budget is not None:
            in_period = query(transactions, TransactionFilter.for_period(
                transaction.period,
                kind=TransactionKind.EXPENSE,
                category=transaction.category,
            ))
            spent = sum_amounts(in_period)
            spent_text = (
                f"You've spent {format_currency(spent, symbol)} of your "
                f"{format_currency(budget.limit, symbol)} budget."
            )

            kind = None
            if spent > budget.limit:
                kind = AdvisoryKind.BUDGET_EXCEEDED
                message = f"Budget exceeded for {transaction.category}! {spent_text}"
            elif spent >= budget.limit * warning_ratio:
                kind = AdvisoryKind.BUDGET_APPROACHING
                message = f"Approaching budget limit for {transaction.category}. {spent_text}"

            if kind is not None:
                advisories.append(Advisory(
                    kind=kind,
                    transaction_id=transaction.id,
                    category=transaction.category,
                    amount=transaction.amount,
                    spent=spent,
                    limit=budget.limit,
                    message=message,
                ))

    threshold = notifications.large_expense_threshold
    if notifications.large_expense_alerts and transaction.amount >= threshold:
        advisories.append(Advisory(
            kind=AdvisoryKind.LARGE_EXPENSE,
            transaction_id=transaction.id,
            category=transaction.category,
            amount=transaction.amount,
            limit=threshold,
            message=(
                f"Large expense recorded: {format_currency(transaction.amount, symbol)} "
                f"for {transaction.category}"
            ),
        ))

    return advisories


class BudgetMonitor:
    """
    Store subscriber that evaluates newly added expenses.

    Usage:
        monitor = BudgetMonitor(audit_logger=store.audit_logger)
        monitor.attach(store)
        receipt = store.add_transaction(...)
        receipt.advisories  # raised by the monitor
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        warning_ratio: Decimal = DEFAULT_WARNING_RATIO,
    ):
        self._audit = audit_logger
        self._warning_ratio = Decimal(str(warning_ratio))

    def attach(self, store: LedgerStore) -> None:
        """Subscribe to a store; the store's audit logger is used if none was given."""
        if self._audit is None:
            self._audit = store.audit_logger
        store.subscribe(self)

    def detach(self, store: LedgerStore) -> None:
        store.unsubscribe(self)

    def __call__(self, mutation: LedgerMutation, store: LedgerStore) -> list[Advisory]:
        # Only insertions are evaluated; edits and deletes stay silent.
        if mutation.mutation_type != MutationType.TRANSACTION_ADDED or mutation.transaction is None:
            return []

        advisories = evaluate(
            mutation.transaction,
            store.transactions,
            store.budgets,
            store.settings,
            self._warning_ratio,
        )
        if self._audit is not None:
            for advisory in advisories:
                self._audit.log_advisory(advisory)
        return advisories
