"""
Audit Logger

DESIGN DECISION: Every significant action on the ledger is logged.
This provides:
1. Traceability of mutations and rejected input
2. Visibility of persistence failures that did not abort a mutation
3. A record of advisories raised for recorded expenses

The audit logger:
- Is synchronous, like the rest of the engine
- Never raises into the caller
- Keeps a bounded in-memory trail of recent events
"""

import logging
from collections import deque
from typing import Optional

import structlog

from finance_planner.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_planner.models.ledger import (
    Advisory,
    Budget,
    Transaction,
    ValidationIssue,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most recent
    ones in memory.
    """

    def __init__(self, history_size: int = 500):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to keep in memory. 0 keeps none.
        """
        self._logger = structlog.get_logger("finance_planner.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> AuditEvent:
        """Log an audit event and return it."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)
        return event

    def log_transaction_added(self, transaction: Transaction) -> None:
        self.log(AuditEventBuilder.transaction_added(transaction))

    def log_transaction_updated(self, transaction: Transaction, fields: list[str]) -> None:
        self.log(AuditEventBuilder.transaction_updated(transaction, fields))

    def log_transaction_deleted(self, transaction_id: str) -> None:
        self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    def log_input_rejected(
        self,
        entity_type: str,
        issues: list[ValidationIssue],
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a rejected transaction or budget."""
        self.log(AuditEventBuilder.input_rejected(entity_type, issues, entity_id))

    def log_budget_set(self, budget: Budget) -> None:
        self.log(AuditEventBuilder.budget_set(budget))

    def log_budget_deleted(self, category: str) -> None:
        self.log(AuditEventBuilder.budget_deleted(category))

    def log_settings_updated(self, keys: list[str]) -> None:
        self.log(AuditEventBuilder.settings_updated(keys))

    def log_advisory(self, advisory: Advisory) -> None:
        self.log(AuditEventBuilder.advisory(advisory))

    def log_ledger_loaded(self, transaction_count: int, budget_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(transaction_count, budget_count))

    def log_sync_failed(self, operation: str, error_message: str) -> None:
        """Log a persistence failure that left the in-memory change applied."""
        self.log(AuditEventBuilder.sync_failed(operation, error_message))

    def log_export_prepared(self, dataset: str, export_format: str, row_count: int) -> None:
        self.log(AuditEventBuilder.export_prepared(dataset, export_format, row_count))

    def log_export_rejected(self, value: str, option: str = "format") -> None:
        self.log(AuditEventBuilder.export_rejected(value, option))
