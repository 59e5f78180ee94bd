"""
Shared fixtures.

Every test gets a fixed clock (15 Mar 2025) and an in-memory ledger, so
results never depend on the real date or on disk state.
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_planner.audit import AuditLogger
from finance_planner.ledger import LedgerStore
from finance_planner.monitor import BudgetMonitor
from finance_planner.services.storage import InMemoryLedgerStorage


TODAY = date(2025, 3, 15)


class FailingStorage(InMemoryLedgerStorage):
    """Loads normally but every write fails."""

    def _write(self, key: str, text: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger(history_size=100)


@pytest.fixture
def store(storage, audit_logger):
    return LedgerStore(storage=storage, audit_logger=audit_logger)


@pytest.fixture
def monitored_store(store):
    BudgetMonitor().attach(store)
    return store


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def failing_store(failing_storage, audit_logger):
    return LedgerStore(storage=failing_storage, audit_logger=audit_logger)


@pytest.fixture
def add():
    """Shorthand for recording a transaction on a store."""

    def _add(store, kind, day, amount, category, note=None):
        return store.add_transaction({
            "kind": kind,
            "transaction_date": day,
            "amount": Decimal(str(amount)),
            "category": category,
            "note": note,
        })

    return _add
