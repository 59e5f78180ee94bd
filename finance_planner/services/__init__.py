"""Services package."""

from finance_planner.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    KeyValueLedgerStorage,
    LedgerSnapshot,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)

__all__ = [
    # Storage services
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "KeyValueLedgerStorage",
    "LedgerSnapshot",
    "LedgerStorageInterface",
    "PersistenceError",
    "StorageError",
]
