"""
Storage Services Package

Provides the abstract persistence interface and key-value implementations
(in-memory and JSON files on disk).
"""

from finance_planner.services.storage.interface import (
    LedgerSnapshot,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)
from finance_planner.services.storage.key_value import (
    BUDGETS_KEY,
    SETTINGS_KEY,
    TRANSACTIONS_KEY,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    KeyValueLedgerStorage,
)

__all__ = [
    # Interfaces
    "LedgerSnapshot",
    "LedgerStorageInterface",
    # Exceptions
    "PersistenceError",
    "StorageError",
    # Key-value implementations
    "BUDGETS_KEY",
    "SETTINGS_KEY",
    "TRANSACTIONS_KEY",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "KeyValueLedgerStorage",
]
