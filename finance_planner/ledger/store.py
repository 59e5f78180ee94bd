"""
Ledger Store

The single owner of transactions, budgets and ledger settings. Every change
goes through one of the mutation methods here; analytics and export only
ever see immutable snapshots.

DESIGN DECISION: A mutation is applied in memory first, then published to
subscribers (the budget monitor), then synced to storage. A failed sync is
logged and reported on the receipt but never rolls the change back: the
in-memory ledger is the source of truth for the rest of the session.

Mutations are serialized with a re-entrant lock, so at most one mutation is
in flight per store even if a host application calls in from several threads.
"""

import threading
import time
from typing import Any, Callable, Iterable, Optional, Union

import structlog
from pydantic import ValidationError

from finance_planner.audit import AuditLogger
from finance_planner.config import LedgerSettings
from finance_planner.models.ledger import (
    Advisory,
    Budget,
    LedgerMutation,
    MutationReceipt,
    MutationType,
    Transaction,
    TransactionDraft,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)
from finance_planner.services.storage import LedgerSnapshot, LedgerStorageInterface
from finance_planner.validation import (
    LedgerValidationError,
    TransactionValidator,
    issues_from_pydantic,
)


MutationSubscriber = Callable[[LedgerMutation, "LedgerStore"], Optional[Iterable[Advisory]]]

IMMUTABLE_TRANSACTION_FIELDS = frozenset({"id", "created_at"})


logger = structlog.get_logger(__name__)


class LedgerStore:
    """
    Authoritative collection of transactions and budgets.

    Usage:
        store = LedgerStore(storage=InMemoryLedgerStorage())
        receipt = store.add_transaction({
            "kind": "expense",
            "transaction_date": "2025-03-02",
            "amount": "1200",
            "category": "Rent",
        })
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize the store, loading any persisted ledger.

        Args:
            storage: Persistence backend. If None, the ledger lives in memory only.
            audit_logger: Audit trail. If None, a local-only logger is created.

        Raises:
            StorageError: If persisted data exists but cannot be read
        """
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._lock = threading.RLock()
        self._subscribers: list[MutationSubscriber] = []
        self._last_id_ns = 0

        snapshot = storage.load() if storage is not None else LedgerSnapshot()
        self._transactions: list[Transaction] = list(snapshot.transactions)
        self._budgets: list[Budget] = list(snapshot.budgets)
        self._settings = LedgerSettings.merged(snapshot.settings)

        if storage is not None:
            self._audit.log_ledger_loaded(len(self._transactions), len(self._budgets))

    # =========================================================================
    # READ ACCESS (snapshots)
    # =========================================================================

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """All transactions in insertion order."""
        with self._lock:
            return tuple(self._transactions)

    @property
    def budgets(self) -> tuple[Budget, ...]:
        with self._lock:
            return tuple(self._budgets)

    @property
    def settings(self) -> LedgerSettings:
        """A copy of the current settings; change them with update_settings()."""
        with self._lock:
            return self._settings.model_copy(deep=True)

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def __len__(self) -> int:
        return len(self._transactions)

    def snapshot(self) -> LedgerSnapshot:
        """Everything in the store, as persisted."""
        with self._lock:
            return LedgerSnapshot(
                transactions=list(self._transactions),
                budgets=list(self._budgets),
                settings=self._settings.model_dump(mode="json"),
            )

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        with self._lock:
            index = self._transaction_index(transaction_id)
            return self._transactions[index] if index is not None else None

    def get_budget(self, category: str) -> Optional[Budget]:
        with self._lock:
            index = self._budget_index(category)
            return self._budgets[index] if index is not None else None

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, handler: MutationSubscriber) -> None:
        """Register a handler called after every applied mutation."""
        with self._lock:
            if handler not in self._subscribers:
                self._subscribers.append(handler)

    def unsubscribe(self, handler: MutationSubscriber) -> None:
        with self._lock:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

    # =========================================================================
    # TRANSACTION MUTATIONS
    # =========================================================================

    def add_transaction(self, draft: Union[TransactionDraft, dict]) -> MutationReceipt:
        """
        Validate and record a new transaction.

        Args:
            draft: TransactionDraft or a mapping with the same fields

        Returns:
            Receipt holding the finalized transaction and any advisories

        Raises:
            LedgerValidationError: If required fields are missing or the
                amount is not a positive number. The store is unchanged.
        """
        with self._lock:
            validator = TransactionValidator(self._settings)
            result = validator.validate(draft)
            if not result.is_valid:
                self._reject("transaction", result)

            coerced, _ = validator.coerce_draft(draft)
            try:
                transaction = Transaction(
                    id=self._new_transaction_id(),
                    kind=coerced.kind,
                    transaction_date=coerced.transaction_date,
                    amount=coerced.amount,
                    category=coerced.category,
                    note=coerced.note or None,
                    recurrence=coerced.recurrence,
                )
            except ValidationError as e:
                self._reject("transaction", ValidationResult(
                    is_valid=False,
                    issues=issues_from_pydantic(e),
                ))

            self._transactions.append(transaction)
            self._audit.log_transaction_added(transaction)

            advisories = self._publish(LedgerMutation(
                mutation_type=MutationType.TRANSACTION_ADDED,
                transaction=transaction,
                key=transaction.id,
            ))
            synced, sync_error = self._sync(MutationType.TRANSACTION_ADDED)

            return MutationReceipt(
                mutation_type=MutationType.TRANSACTION_ADDED,
                transaction=transaction,
                advisories=advisories,
                synced=synced,
                sync_error=sync_error,
            )

    def update_transaction(
        self,
        transaction_id: str,
        updates: Optional[dict[str, Any]] = None,
        **fields: Any,
    ) -> MutationReceipt:
        """
        Merge supplied fields onto an existing transaction.

        Fields that are not supplied are left exactly as they are.
        An unknown id gives a receipt with found=False.

        Raises:
            LedgerValidationError: If a supplied field is invalid, unknown,
                or immutable (id, created_at)
        """
        changes = {**(updates or {}), **fields}

        with self._lock:
            index = self._transaction_index(transaction_id)
            if index is None:
                return MutationReceipt(
                    mutation_type=MutationType.TRANSACTION_UPDATED,
                    found=False,
                )

            issues = []
            for name in changes:
                if name in IMMUTABLE_TRANSACTION_FIELDS:
                    issues.append(ValidationIssue(
                        field=name,
                        issue_type="immutable",
                        message=f"{name} cannot be changed",
                        severity="error",
                    ))
                elif name not in Transaction.model_fields:
                    issues.append(ValidationIssue(
                        field=name,
                        issue_type="unknown_field",
                        message=f"{name} is not a transaction field",
                        severity="error",
                    ))
            if issues:
                self._reject("transaction", ValidationResult(is_valid=False, issues=issues), transaction_id)

            existing = self._transactions[index]
            try:
                updated = Transaction.model_validate({**existing.model_dump(), **changes})
            except ValidationError as e:
                self._reject(
                    "transaction",
                    ValidationResult(is_valid=False, issues=issues_from_pydantic(e)),
                    transaction_id,
                )

            self._transactions[index] = updated
            self._audit.log_transaction_updated(updated, sorted(changes))

            advisories = self._publish(LedgerMutation(
                mutation_type=MutationType.TRANSACTION_UPDATED,
                transaction=updated,
                key=transaction_id,
            ))
            synced, sync_error = self._sync(MutationType.TRANSACTION_UPDATED)

            return MutationReceipt(
                mutation_type=MutationType.TRANSACTION_UPDATED,
                transaction=updated,
                advisories=advisories,
                synced=synced,
                sync_error=sync_error,
            )

    def delete_transaction(self, transaction_id: str) -> MutationReceipt:
        """Remove a transaction; found=False if the id is unknown."""
        with self._lock:
            index = self._transaction_index(transaction_id)
            if index is None:
                return MutationReceipt(
                    mutation_type=MutationType.TRANSACTION_DELETED,
                    found=False,
                )

            removed = self._transactions.pop(index)
            self._audit.log_transaction_deleted(transaction_id)

            advisories = self._publish(LedgerMutation(
                mutation_type=MutationType.TRANSACTION_DELETED,
                transaction=removed,
                key=transaction_id,
            ))
            synced, sync_error = self._sync(MutationType.TRANSACTION_DELETED)

            return MutationReceipt(
                mutation_type=MutationType.TRANSACTION_DELETED,
                transaction=removed,
                advisories=advisories,
                synced=synced,
                sync_error=sync_error,
            )

    # =========================================================================
    # BUDGET MUTATIONS
    # =========================================================================

    def set_budget(self, category: str, amount: Any) -> MutationReceipt:
        """
        Create or replace the budget for a category.

        Raises:
            LedgerValidationError: If the category is blank or the amount
                is not a positive number
        """
        with self._lock:
            result = TransactionValidator(self._settings).validate_budget(category, amount)
            if not result.is_valid:
                self._reject("budget", result, category if isinstance(category, str) else None)

            try:
                budget = Budget(category=category, limit=amount)
            except ValidationError as e:
                self._reject(
                    "budget",
                    ValidationResult(is_valid=False, issues=issues_from_pydantic(e)),
                    category,
                )

            index = self._budget_index(budget.category)
            if index is None:
                self._budgets.append(budget)
            else:
                self._budgets[index] = budget
            self._audit.log_budget_set(budget)

            advisories = self._publish(LedgerMutation(
                mutation_type=MutationType.BUDGET_SET,
                budget=budget,
                key=budget.category,
            ))
            synced, sync_error = self._sync(MutationType.BUDGET_SET)

            return MutationReceipt(
                mutation_type=MutationType.BUDGET_SET,
                budget=budget,
                advisories=advisories,
                synced=synced,
                sync_error=sync_error,
            )

    def delete_budget(self, category: str) -> MutationReceipt:
        """Remove the budget for a category; found=False if there is none."""
        with self._lock:
            index = self._budget_index(category)
            if index is None:
                return MutationReceipt(
                    mutation_type=MutationType.BUDGET_DELETED,
                    found=False,
                )

            removed = self._budgets.pop(index)
            self._audit.log_budget_deleted(removed.category)

            advisories = self._publish(LedgerMutation(
                mutation_type=MutationType.BUDGET_DELETED,
                budget=removed,
                key=removed.category,
            ))
            synced, sync_error = self._sync(MutationType.BUDGET_DELETED)

            return MutationReceipt(
                mutation_type=MutationType.BUDGET_DELETED,
                budget=removed,
                advisories=advisories,
                synced=synced,
                sync_error=sync_error,
            )

    # =========================================================================
    # SETTINGS MUTATIONS
    # =========================================================================

    def update_settings(self, overrides: dict[str, Any]) -> MutationReceipt:
        """
        Apply settings overrides per key (notifications merged per key).

        Raises:
            LedgerValidationError: If an override has an invalid value
        """
        with self._lock:
            try:
                updated = self._settings.with_overrides(overrides)
            except ValidationError as e:
                self._reject("settings", ValidationResult(
                    is_valid=False,
                    issues=issues_from_pydantic(e),
                ))
            return self._replace_settings(updated, sorted(overrides))

    def add_category(self, kind: Union[TransactionKind, str], name: str) -> MutationReceipt:
        """
        Add a category to the set for a kind, keeping the set sorted.

        Blank or already-present names change nothing (found=False).
        """
        kind = TransactionKind(kind)
        name = (name or "").strip()
        with self._lock:
            current = self._settings.categories_for(kind.value)
            if not name or name in current:
                return MutationReceipt(mutation_type=MutationType.SETTINGS_UPDATED, found=False)
            field = f"{kind.value}_categories"
            updated = self._settings.with_overrides({field: sorted([*current, name])})
            return self._replace_settings(updated, [field])

    def remove_category(self, kind: Union[TransactionKind, str], name: str) -> MutationReceipt:
        """
        Remove a category from the set for a kind.

        Existing transactions that use it are left untouched.
        """
        kind = TransactionKind(kind)
        with self._lock:
            current = self._settings.categories_for(kind.value)
            if name not in current:
                return MutationReceipt(mutation_type=MutationType.SETTINGS_UPDATED, found=False)
            field = f"{kind.value}_categories"
            updated = self._settings.with_overrides({field: [c for c in current if c != name]})
            return self._replace_settings(updated, [field])

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _replace_settings(self, updated: LedgerSettings, keys: list[str]) -> MutationReceipt:
        self._settings = updated
        self._audit.log_settings_updated(keys)
        advisories = self._publish(LedgerMutation(mutation_type=MutationType.SETTINGS_UPDATED))
        synced, sync_error = self._sync(MutationType.SETTINGS_UPDATED)
        return MutationReceipt(
            mutation_type=MutationType.SETTINGS_UPDATED,
            advisories=advisories,
            synced=synced,
            sync_error=sync_error,
        )

    def _reject(
        self,
        entity_type: str,
        result: ValidationResult,
        entity_id: Optional[str] = None,
    ) -> None:
        self._audit.log_input_rejected(entity_type, result.issues, entity_id)
        raise LedgerValidationError(result)

    def _transaction_index(self, transaction_id: str) -> Optional[int]:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        return None

    def _budget_index(self, category: str) -> Optional[int]:
        for index, budget in enumerate(self._budgets):
            if budget.category == category:
                return index
        return None

    def _new_transaction_id(self) -> str:
        """
        Fixed-width nanosecond timestamp, strictly increasing per store.

        Lexicographic order of ids matches creation order.
        """
        existing = {t.id for t in self._transactions}
        candidate = max(time.time_ns(), self._last_id_ns + 1)
        while f"{candidate:020d}" in existing:
            candidate += 1
        self._last_id_ns = candidate
        return f"{candidate:020d}"

    def _publish(self, mutation: LedgerMutation) -> list[Advisory]:
        """Notify subscribers; a failing subscriber is logged and skipped."""
        advisories: list[Advisory] = []
        for handler in list(self._subscribers):
            try:
                produced = handler(mutation, self)
            except Exception:
                logger.exception(
                    "mutation_subscriber_failed",
                    mutation_type=mutation.mutation_type.value,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
                continue
            if produced:
                advisories.extend(produced)
        return advisories

    def _sync(self, operation: MutationType) -> tuple[bool, Optional[str]]:
        """Persist the current state. Failures are reported, not raised."""
        if self._storage is None:
            return True, None
        try:
            self._storage.save(self._transactions, self._budgets, self._settings)
        except Exception as e:
            self._audit.log_sync_failed(operation.value, str(e))
            return False, str(e)
        return True, None
