"""Demo ledger for first runs and manual testing."""

from datetime import date
from decimal import Decimal
from typing import Callable

from finance_planner.ledger.store import LedgerStore
from finance_planner.models.ledger import MutationReceipt, PeriodKey, TransactionKind


# (kind, day of month, amount, category, note)
SAMPLE_TRANSACTIONS = [
    (TransactionKind.INCOME, 1, Decimal("3000"), "Salary", "Monthly salary"),
    (TransactionKind.INCOME, 15, Decimal("500"), "Freelance", "Website project"),
    (TransactionKind.EXPENSE, 2, Decimal("1200"), "Rent", "Apartment rent"),
    (TransactionKind.EXPENSE, 5, Decimal("350"), "Food", "Groceries"),
    (TransactionKind.EXPENSE, 10, Decimal("80"), "Transportation", "Monthly bus pass"),
    (TransactionKind.EXPENSE, 12, Decimal("150"), "Entertainment", "Movie tickets and dinner"),
]

SAMPLE_BUDGETS = [
    ("Rent", Decimal("1200")),
    ("Food", Decimal("400")),
    ("Transportation", Decimal("100")),
    ("Entertainment", Decimal("200")),
]


def load_sample_data(
    store: LedgerStore,
    clock: Callable[[], date] = date.today,
) -> list[MutationReceipt]:
    """
    Seed the store with the demo ledger for the clock's current month.

    Goes through the normal mutation API, so advisories fire as they would
    for real input. Returns the receipts in the order applied.
    """
    period = PeriodKey.of(clock())
    receipts = []
    for kind, day, amount, category, note in SAMPLE_TRANSACTIONS:
        receipts.append(store.add_transaction({
            "kind": kind,
            "transaction_date": date(period.year, period.month, day),
            "amount": amount,
            "category": category,
            "note": note,
        }))
    for category, limit in SAMPLE_BUDGETS:
        receipts.append(store.set_budget(category, limit))
    return receipts
