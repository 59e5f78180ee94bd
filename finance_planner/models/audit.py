"""
Audit Models for Finance Planner

Every ledger mutation, rejected input, persistence failure and advisory is
recorded as an AuditEvent. This provides:
1. Traceability of every change to the ledger
2. Debugging information when a sync to storage fails
3. A record of which advisories were raised and why

DESIGN DECISION: Audit events are append-only and never fed back into the
ledger. They describe what happened; they don't drive business logic.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_planner.models.ledger import (
    Advisory,
    AdvisoryKind,
    Budget,
    Transaction,
    ValidationIssue,
)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each store mutation and each advisory has its own event type.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Budgets
    BUDGET_SET = "budget_set"
    BUDGET_DELETED = "budget_deleted"
    BUDGET_REJECTED = "budget_rejected"

    # Settings
    SETTINGS_UPDATED = "settings_updated"
    SETTINGS_REJECTED = "settings_rejected"

    # Advisories
    BUDGET_APPROACHING = "budget_approaching"
    BUDGET_EXCEEDED = "budget_exceeded"
    LARGE_EXPENSE = "large_expense"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    SYNC_FAILED = "sync_failed"

    # Export
    EXPORT_PREPARED = "export_prepared"
    EXPORT_REJECTED = "export_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_ADVISORY_EVENT_TYPES = {
    AdvisoryKind.BUDGET_APPROACHING: AuditEventType.BUDGET_APPROACHING,
    AdvisoryKind.BUDGET_EXCEEDED: AuditEventType.BUDGET_EXCEEDED,
    AdvisoryKind.LARGE_EXPENSE: AuditEventType.LARGE_EXPENSE,
}


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'export')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id or budget category the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a row of strings.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction)
        event = AuditEventBuilder.advisory(advisory)
    """

    @staticmethod
    def transaction_added(transaction: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction.id,
            description=(
                f"Recorded {transaction.kind.value} of {transaction.amount} "
                f"in {transaction.category}"
            ),
            details={
                "kind": transaction.kind.value,
                "amount": str(transaction.amount),
                "category": transaction.category,
                "transaction_date": transaction.transaction_date.isoformat(),
            },
        )

    @staticmethod
    def transaction_updated(transaction: Transaction, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction.id,
            description=f"Updated transaction fields: {', '.join(fields) or 'none'}",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def input_rejected(
        entity_type: str,
        issues: list[ValidationIssue],
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        event_type = {
            "budget": AuditEventType.BUDGET_REJECTED,
            "settings": AuditEventType.SETTINGS_REJECTED,
        }.get(entity_type, AuditEventType.TRANSACTION_REJECTED)
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} rejected with {len(issues)} issues",
            details={
                "issues": [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in issues
                ],
            },
        )

    @staticmethod
    def budget_set(budget: Budget) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            entity_type="budget",
            entity_id=budget.category,
            description=f"Budget for {budget.category} set to {budget.limit}",
            details={"limit": str(budget.limit)},
        )

    @staticmethod
    def budget_deleted(category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            entity_type="budget",
            entity_id=category,
            description=f"Budget for {category} removed",
        )

    @staticmethod
    def settings_updated(keys: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description="Ledger settings updated",
            details={"keys": keys},
        )

    @staticmethod
    def advisory(advisory: Advisory) -> AuditEvent:
        return AuditEvent(
            event_type=_ADVISORY_EVENT_TYPES[advisory.kind],
            severity=(
                AuditSeverity.WARNING
                if advisory.kind == AdvisoryKind.BUDGET_EXCEEDED
                else AuditSeverity.INFO
            ),
            entity_type="transaction",
            entity_id=advisory.transaction_id,
            description=advisory.message,
            details={
                "category": advisory.category,
                "amount": str(advisory.amount),
                "spent": str(advisory.spent) if advisory.spent is not None else None,
                "limit": str(advisory.limit) if advisory.limit is not None else None,
            },
        )

    @staticmethod
    def ledger_loaded(transaction_count: int, budget_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            entity_type="ledger",
            description=(
                f"Ledger loaded with {transaction_count} transactions "
                f"and {budget_count} budgets"
            ),
            details={
                "transaction_count": transaction_count,
                "budget_count": budget_count,
            },
        )

    @staticmethod
    def sync_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            description=f"Persistence sync failed after {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def export_prepared(dataset: str, export_format: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_PREPARED,
            entity_type="export",
            description=f"Prepared {dataset} export for {export_format}",
            details={
                "dataset": dataset,
                "format": export_format,
                "row_count": row_count,
            },
        )

    @staticmethod
    def export_rejected(value: str, option: str = "format") -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="export",
            description=f"Unsupported export {option}: {value}",
            details={option: value},
        )
