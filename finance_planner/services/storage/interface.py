"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger persistence.
This allows us to:
1. Keep the ledger engine independent of where snapshots live
2. Use in-memory storage for testing
3. Swap the file backend for something else without touching business logic

The interface is intentionally tiny: whole-collection snapshots in, whole
collection snapshots out. The ledger is small enough that we never need
row-level writes.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from pydantic import BaseModel, Field

from finance_planner.config import LedgerSettings
from finance_planner.models.ledger import Budget, Transaction


class LedgerSnapshot(BaseModel):
    """
    Everything persisted for one ledger.

    `settings` is the raw persisted mapping; it is merged over the defaults
    by LedgerSettings.merged() when the store opens.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> LedgerSnapshot:
        """
        Load the persisted ledger.

        Returns:
            The stored snapshot. Missing data yields empty collections
            and empty settings, never an error.

        Raises:
            StorageError: If stored data exists but cannot be read
        """
        pass

    @abstractmethod
    def save(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget],
        settings: LedgerSettings,
    ) -> None:
        """
        Persist a full snapshot of the ledger.

        Args:
            transactions: All transactions, in insertion order
            budgets: All budgets
            settings: Current ledger settings

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A snapshot could not be written."""
    pass
