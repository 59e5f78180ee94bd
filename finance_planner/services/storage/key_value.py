"""
Key-Value Storage Implementations

DESIGN DECISION: The ledger is stored as three JSON documents under fixed
keys, one per collection. This mirrors how the browser version of the planner
kept its data, so exports from it can be dropped into a data directory and
loaded as-is.

TRADEOFFS:
- Every mutation rewrites whole collections (fine for a personal ledger)
- No cross-key transactions (a crash between writes can leave budgets one
  mutation behind transactions; the next save heals it)
- Filtering happens in Python, not in the backend

Records written by the browser version use camelCase names (type, date,
description, recurring, createdAt); those are translated on load.

Records that fail validation on load are skipped but kept verbatim, and are
written back after the readable records on every save, so opening and
mutating a ledger never deletes data this version cannot read.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Sequence

import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_planner.config import LedgerSettings
from finance_planner.models.ledger import Budget, Transaction
from finance_planner.services.storage.interface import (
    LedgerSnapshot,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)


TRANSACTIONS_KEY = "financePlannerTransactions"
BUDGETS_KEY = "financePlannerBudgets"
SETTINGS_KEY = "financePlannerSettings"

# Browser-era field names -> current field names
LEGACY_TRANSACTION_FIELDS = {
    "type": "kind",
    "date": "transaction_date",
    "description": "note",
    "recurring": "recurrence",
    "createdAt": "created_at",
}
LEGACY_RECURRENCE_FIELDS = {
    "endDate": "end_date",
}
LEGACY_BUDGET_FIELDS = {
    "amount": "limit",
}
LEGACY_SETTINGS_FIELDS = {
    "currencySymbol": "currency_symbol",
    "firstDayOfWeek": "first_day_of_week",
    "darkMode": "dark_mode",
    "incomeCategories": "income_categories",
    "expenseCategories": "expense_categories",
}
LEGACY_NOTIFICATION_FIELDS = {
    "dailyTime": "daily_time",
    "budgetAlerts": "budget_alerts",
    "largeExpenseAlerts": "large_expense_alerts",
    "largeExpenseThreshold": "large_expense_threshold",
}


logger = structlog.get_logger(__name__)


def _rename(record: dict, mapping: dict[str, str]) -> dict:
    """Rename legacy keys, letting current names win on conflict."""
    renamed = {}
    for key, value in record.items():
        new_key = mapping.get(key, key)
        if new_key in renamed and key != new_key:
            continue
        renamed[new_key] = value
    return renamed


class KeyValueLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage over a textual key-value backend.

    Subclasses provide `_read` and `_write`; this class owns the encoding.
    Subclasses must call `super().__init__()`.
    """

    def __init__(self):
        self._unreadable: dict[str, list[Any]] = {TRANSACTIONS_KEY: [], BUDGETS_KEY: []}

    @property
    def unreadable_records(self) -> dict[str, list[Any]]:
        """Raw records skipped by the last load, by key (copy)."""
        return {key: list(records) for key, records in self._unreadable.items()}

    def _read(self, key: str) -> Optional[str]:
        """Return the stored text for a key, or None if absent."""
        raise NotImplementedError

    def _write(self, key: str, text: str) -> None:
        """Store text under a key, replacing any previous value."""
        raise NotImplementedError

    def _read_document(self, key: str, default: Any) -> Any:
        text = self._read(key)
        if text is None or not text.strip():
            return default
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored data under {key} is not valid JSON: {e}")

    def _transaction_from_record(self, record: dict) -> Transaction:
        record = _rename(record, LEGACY_TRANSACTION_FIELDS)
        recurrence = record.get("recurrence")
        if isinstance(recurrence, dict):
            record["recurrence"] = {
                k: v
                for k, v in _rename(recurrence, LEGACY_RECURRENCE_FIELDS).items()
                if v is not None
            }
        record["id"] = str(record.get("id", ""))
        return Transaction.model_validate(record)

    def _budget_from_record(self, record: dict) -> Budget:
        return Budget.model_validate(_rename(record, LEGACY_BUDGET_FIELDS))

    def _settings_from_record(self, record: dict) -> dict[str, Any]:
        settings = _rename(record, LEGACY_SETTINGS_FIELDS)
        notifications = settings.get("notifications")
        if isinstance(notifications, dict):
            settings["notifications"] = _rename(notifications, LEGACY_NOTIFICATION_FIELDS)
        return settings

    def load(self) -> LedgerSnapshot:
        """Load all three documents; malformed records are skipped."""
        raw_transactions = self._read_document(TRANSACTIONS_KEY, [])
        raw_budgets = self._read_document(BUDGETS_KEY, [])
        raw_settings = self._read_document(SETTINGS_KEY, {})

        if not isinstance(raw_transactions, list) or not isinstance(raw_budgets, list):
            raise StorageError("Stored transactions and budgets must be JSON arrays")
        if not isinstance(raw_settings, dict):
            raise StorageError("Stored settings must be a JSON object")

        unreadable: dict[str, list[Any]] = {TRANSACTIONS_KEY: [], BUDGETS_KEY: []}

        transactions = []
        for record in raw_transactions:
            try:
                transactions.append(self._transaction_from_record(dict(record)))
            except (ValidationError, TypeError, ValueError) as e:
                unreadable[TRANSACTIONS_KEY].append(record)
                logger.warning("skipped_malformed_transaction", record=record, error=str(e))

        budgets = []
        for record in raw_budgets:
            try:
                budgets.append(self._budget_from_record(dict(record)))
            except (ValidationError, TypeError, ValueError) as e:
                unreadable[BUDGETS_KEY].append(record)
                logger.warning("skipped_malformed_budget", record=record, error=str(e))

        self._unreadable = unreadable

        return LedgerSnapshot(
            transactions=transactions,
            budgets=budgets,
            settings=self._settings_from_record(raw_settings),
        )

    def save(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget],
        settings: LedgerSettings,
    ) -> None:
        """Write all three documents, followed by any records the last load skipped."""
        documents = {
            TRANSACTIONS_KEY: [t.to_record() for t in transactions] + self._unreadable[TRANSACTIONS_KEY],
            BUDGETS_KEY: [b.to_record() for b in budgets] + self._unreadable[BUDGETS_KEY],
            SETTINGS_KEY: settings.model_dump(mode="json"),
        }
        for key, document in documents.items():
            try:
                self._write(key, json.dumps(document))
            except Exception as e:
                raise PersistenceError(f"Failed to write {key}: {e}")


class InMemoryLedgerStorage(KeyValueLedgerStorage):
    """
    Dict-backed storage.

    Keeps the encoded text rather than the objects, so what round-trips here
    is exactly what would round-trip through a real backend.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__()
        self._data: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, text: str) -> None:
        self._data[key] = text

    @property
    def raw(self) -> dict[str, str]:
        """The stored text by key (copy)."""
        return dict(self._data)


class JsonFileLedgerStorage(KeyValueLedgerStorage):
    """
    One JSON file per key inside a data directory.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous document intact.
    """

    def __init__(self, directory: Path):
        super().__init__()
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    def _write(self, key: str, text: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, path)
