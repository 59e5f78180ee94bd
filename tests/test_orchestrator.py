"""Tests for component wiring."""

import pytest
from datetime import date
from decimal import Decimal

from finance_planner.config import AppSettings
from finance_planner.models.ledger import AdvisoryKind
from finance_planner.orchestrator import create_ledger_components
from finance_planner.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    StorageError,
    TRANSACTIONS_KEY,
)


@pytest.fixture
def app_settings(tmp_path):
    return AppSettings(_env_file=None, data_dir=tmp_path / "data")


class TestCreateLedgerComponents:
    """Tests for create_ledger_components."""

    def test_components_share_one_store(self, clock, app_settings):
        """Test every component reads the same ledger."""
        components = create_ledger_components(InMemoryLedgerStorage(), clock, app_settings)
        components.store.set_budget("Food", Decimal("100"))
        receipt = components.store.add_transaction({
            "kind": "expense",
            "transaction_date": "2025-03-03",
            "amount": "95",
            "category": "Food",
        })

        assert [a.kind for a in receipt.advisories] == [AdvisoryKind.BUDGET_APPROACHING]
        assert components.queries.run() == [receipt.transaction]
        assert components.aggregator.dashboard_summary().expenses == Decimal("95")
        assert components.trends.category_trend("Food")[-1].total == Decimal("95")
        assert components.exporter.prepare("csv", "transactions").table.row_count == 1

    def test_settings_drive_components(self, clock):
        """Test warning ratio and recent limit come from app settings."""
        settings = AppSettings(
            _env_file=None,
            budget_warning_ratio=Decimal("0.5"),
            recent_transactions_limit=1,
        )
        components = create_ledger_components(InMemoryLedgerStorage(), clock, settings)
        components.store.set_budget("Food", Decimal("100"))
        for day in (1, 2):
            receipt = components.store.add_transaction({
                "kind": "expense",
                "transaction_date": date(2025, 3, day),
                "amount": "30",
                "category": "Food",
            })
        assert [a.kind for a in receipt.advisories] == [AdvisoryKind.BUDGET_APPROACHING]
        assert len(components.aggregator.dashboard_summary().recent_transactions) == 1

    def test_json_file_backend_from_settings(self, clock, tmp_path):
        """Test the json_file backend persists into the data directory."""
        settings = AppSettings(_env_file=None, storage_backend="json_file", data_dir=tmp_path)
        components = create_ledger_components(clock=clock, settings=settings)
        components.store.set_budget("Rent", Decimal("1200"))

        reopened = create_ledger_components(JsonFileLedgerStorage(tmp_path), clock, settings)
        assert reopened.store.get_budget("Rent").limit == Decimal("1200")

    def test_components_are_independent(self, clock, app_settings):
        """Test two factories never share a ledger."""
        first = create_ledger_components(clock=clock, settings=app_settings)
        second = create_ledger_components(clock=clock, settings=app_settings)
        first.store.set_budget("Food", Decimal("100"))
        assert second.store.budgets == ()

    def test_unreadable_storage_propagates(self, clock, app_settings):
        """Test a corrupt ledger fails loudly when opened."""
        storage = InMemoryLedgerStorage({TRANSACTIONS_KEY: "[oops"})
        with pytest.raises(StorageError):
            create_ledger_components(storage, clock, app_settings)

    def test_close_detaches_monitor(self, clock, app_settings):
        """Test closing stops advisories."""
        components = create_ledger_components(clock=clock, settings=app_settings)
        components.close()
        receipt = components.store.add_transaction({
            "kind": "expense",
            "transaction_date": "2025-03-03",
            "amount": "500",
            "category": "Shopping",
        })
        assert receipt.advisories == []
