"""
Component Wiring for Finance Planner

This module ties the ledger engine together:
1. Storage → Ledger Store (load on open, sync after every mutation)
2. Ledger Store → Budget Monitor (advisories on recorded expenses)
3. Ledger Store → Query Engine / Aggregator / Trend Analyzer / Export Formatter

DESIGN DECISION: There is no module-level ledger. Each call to
create_ledger_components() builds an independent set of components, so tests
and embedding applications never share state by accident.
"""

from datetime import date
from typing import Optional

import structlog

from finance_planner.analytics import Aggregator, Clock, TrendAnalyzer
from finance_planner.audit import AuditLogger, configure_logging
from finance_planner.config import AppSettings, get_settings
from finance_planner.export import ExportFormatter
from finance_planner.ledger import LedgerStore
from finance_planner.monitor import BudgetMonitor
from finance_planner.queries import QueryEngine
from finance_planner.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
)


logger = structlog.get_logger(__name__)


class LedgerComponents:
    """
    Handle on one fully wired ledger.

    All components share the same store, clock and audit logger.
    """

    def __init__(
        self,
        store: LedgerStore,
        monitor: BudgetMonitor,
        queries: QueryEngine,
        aggregator: Aggregator,
        trends: TrendAnalyzer,
        exporter: ExportFormatter,
        clock: Clock,
    ):
        self.store = store
        self.monitor = monitor
        self.queries = queries
        self.aggregator = aggregator
        self.trends = trends
        self.exporter = exporter
        self.clock = clock

    @property
    def audit_logger(self) -> AuditLogger:
        return self.store.audit_logger

    def close(self) -> None:
        """Detach the monitor so the store stops producing advisories."""
        self.monitor.detach(self.store)


def create_storage(settings: AppSettings) -> LedgerStorageInterface:
    """Build the persistence backend named by the settings."""
    if settings.storage_backend == "json_file":
        return JsonFileLedgerStorage(settings.resolved_data_dir)
    return InMemoryLedgerStorage()


def create_ledger_components(
    storage: Optional[LedgerStorageInterface] = None,
    clock: Optional[Clock] = None,
    settings: Optional[AppSettings] = None,
) -> LedgerComponents:
    """
    Factory function to create all ledger components.

    Args:
        storage: Persistence backend. If None, one is chosen from the
                 app settings (in-memory by default).
        clock: Source of "today". Defaults to the system date.
        settings: Process-level settings. Defaults to get_settings().

    Returns:
        LedgerComponents sharing one store

    Raises:
        StorageError: If persisted data exists but cannot be read
    """
    settings = settings or get_settings()
    clock = clock or date.today

    configure_logging(settings.log_level)

    if storage is None:
        storage = create_storage(settings)
        logger.info(
            "storage_selected",
            backend=settings.storage_backend,
            environment=settings.environment,
        )

    audit_logger = AuditLogger(history_size=settings.audit_history_size)
    store = LedgerStore(storage=storage, audit_logger=audit_logger)

    monitor = BudgetMonitor(
        audit_logger=audit_logger,
        warning_ratio=settings.budget_warning_ratio,
    )
    monitor.attach(store)

    return LedgerComponents(
        store=store,
        monitor=monitor,
        queries=QueryEngine(store),
        aggregator=Aggregator(
            store,
            clock=clock,
            recent_limit=settings.recent_transactions_limit,
        ),
        trends=TrendAnalyzer(store, clock=clock),
        exporter=ExportFormatter(store, clock=clock, audit_logger=audit_logger),
        clock=clock,
    )
