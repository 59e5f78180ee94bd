"""
Data Models Package

This package contains all Pydantic models used by the ledger engine.
All data flowing through the system must conform to these schemas.
"""

from finance_planner.models.ledger import (
    ALL_CATEGORIES,
    Advisory,
    AdvisoryKind,
    AnalysisPeriod,
    Budget,
    BudgetStatus,
    CategoryAnalysis,
    CategoryShare,
    CategoryTotal,
    DateRange,
    LedgerMutation,
    MonthlySeriesEntry,
    MonthlySummary,
    MutationReceipt,
    MutationType,
    PeriodKey,
    Recurrence,
    RecurrenceFrequency,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionKind,
    TrendPoint,
    ValidationIssue,
    ValidationResult,
    format_currency,
)
from finance_planner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_planner.models.export import (
    ExportDataset,
    ExportFormat,
    ExportPayload,
    ExportRange,
    KeyValueData,
    TabularData,
)

__all__ = [
    # Ledger models
    "ALL_CATEGORIES",
    "Advisory",
    "AdvisoryKind",
    "AnalysisPeriod",
    "Budget",
    "BudgetStatus",
    "CategoryAnalysis",
    "CategoryShare",
    "CategoryTotal",
    "DateRange",
    "LedgerMutation",
    "MonthlySeriesEntry",
    "MonthlySummary",
    "MutationReceipt",
    "MutationType",
    "PeriodKey",
    "Recurrence",
    "RecurrenceFrequency",
    "Transaction",
    "TransactionDraft",
    "TransactionFilter",
    "TransactionKind",
    "TrendPoint",
    "ValidationIssue",
    "ValidationResult",
    "format_currency",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Export models
    "ExportDataset",
    "ExportFormat",
    "ExportPayload",
    "ExportRange",
    "KeyValueData",
    "TabularData",
]
