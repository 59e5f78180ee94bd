"""
Tests for Finance Planner

Test strategy:
1. Unit tests for individual components (models, validators, analytics)
2. Store-level tests against in-memory storage
3. No real files or clocks in tests (use fixtures)
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_planner.models.ledger import (
    Advisory,
    AdvisoryKind,
    AnalysisPeriod,
    Budget,
    BudgetStatus,
    DateRange,
    MonthlySeriesEntry,
    PeriodKey,
    Recurrence,
    RecurrenceFrequency,
    Transaction,
    TransactionFilter,
    TransactionKind,
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
    KeyValueData,
)


def make_transaction(**overrides):
    data = {
        "id": "00000000000000000001",
        "kind": TransactionKind.EXPENSE,
        "transaction_date": date(2025, 3, 2),
        "amount": Decimal("1200.00"),
        "category": "Rent",
    }
    data.update(overrides)
    return Transaction(**data)


class TestLedgerModels:
    """Tests for transaction and budget models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        transaction = make_transaction(note="Apartment rent")
        assert transaction.kind == TransactionKind.EXPENSE
        assert transaction.amount == Decimal("1200.00")
        assert transaction.period == PeriodKey(2025, 3)
        assert transaction.is_expense is True
        assert transaction.created_at.tzinfo is not None

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from category."""
        transaction = make_transaction(category="  Food  ")
        assert transaction.category == "Food"

    def test_transaction_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal("0"))
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal("-5"))

    def test_transaction_keeps_sub_cent_amount(self):
        """Test that amounts with more than two decimals are kept as entered."""
        assert make_transaction(amount=Decimal("10.555")).amount == Decimal("10.555")

    def test_transaction_rejects_non_finite_amount(self):
        """Test that infinity and NaN are not amounts."""
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal("Infinity"))
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal("NaN"))

    def test_transaction_is_immutable(self):
        """Test that a finalized transaction cannot be modified."""
        transaction = make_transaction()
        with pytest.raises(ValueError):
            transaction.amount = Decimal("1")

    def test_transaction_record_is_json_compatible(self):
        """Test to_record gives plain JSON values."""
        record = make_transaction(
            recurrence=Recurrence(frequency=RecurrenceFrequency.MONTHLY),
        ).to_record()
        assert record["transaction_date"] == "2025-03-02"
        assert record["kind"] == "expense"
        assert record["recurrence"]["frequency"] == "monthly"
        assert Decimal(record["amount"]) == Decimal("1200.00")

    def test_recurrence_iterations_must_be_positive(self):
        """Test recurrence iteration count lower bound."""
        with pytest.raises(ValueError):
            Recurrence(frequency=RecurrenceFrequency.WEEKLY, iterations=0)

    def test_budget_rejects_non_positive_limit(self):
        """Test that a budget limit must be positive."""
        with pytest.raises(ValueError):
            Budget(category="Food", limit=Decimal("0"))

    def test_budget_keeps_sub_cent_limit(self):
        """Test that a budget limit with three decimals is kept."""
        assert Budget(category="Food", limit=Decimal("33.333")).limit == Decimal("33.333")

    def test_budget_status_properties(self):
        """Test percent_used and is_over."""
        status = BudgetStatus(
            category="Food",
            limit=Decimal("400"),
            spent=Decimal("500"),
            remaining=Decimal("-100"),
        )
        assert status.is_over is True
        assert status.percent_used == pytest.approx(125.0)

    def test_series_entry_record_is_flat(self):
        """Test the period is split into year and month columns."""
        entry = MonthlySeriesEntry(
            period=PeriodKey(2025, 2),
            income=Decimal("3500"),
            expenses=Decimal("1780"),
            savings=Decimal("1720"),
            transaction_count=6,
        )
        record = entry.to_record()
        assert list(record) == ["year", "month", "income", "expenses", "savings", "transaction_count"]
        assert record["month"] == 2
        assert record["savings"] == "1720"


class TestPeriods:
    """Tests for PeriodKey and DateRange."""

    def test_shift_across_year_boundary(self):
        """Test shifting months wraps years."""
        assert PeriodKey(2025, 1).shifted(-1) == PeriodKey(2024, 12)
        assert PeriodKey(2024, 12).shifted(1) == PeriodKey(2025, 1)
        assert PeriodKey(2025, 3).shifted(-14) == PeriodKey(2024, 1)

    def test_period_bounds_and_label(self):
        """Test first/last day and display label."""
        period = PeriodKey(2024, 2)
        assert period.first_day == date(2024, 2, 1)
        assert period.last_day == date(2024, 2, 29)
        assert period.label == "Feb 2024"

    def test_periods_sort_chronologically(self):
        """Test tuple ordering is chronological."""
        periods = [PeriodKey(2025, 1), PeriodKey(2024, 12), PeriodKey(2025, 3)]
        assert sorted(periods) == [PeriodKey(2024, 12), PeriodKey(2025, 1), PeriodKey(2025, 3)]

    def test_date_range_is_inclusive(self):
        """Test both bounds are inclusive."""
        span = DateRange(start=date(2025, 3, 1), end=date(2025, 3, 31))
        assert span.contains(date(2025, 3, 1))
        assert span.contains(date(2025, 3, 31))
        assert not span.contains(date(2025, 4, 1))

    def test_date_range_open_ended(self):
        """Test that a missing bound is unbounded."""
        assert DateRange(start=date(2025, 3, 1)).contains(date(2030, 1, 1))
        assert DateRange(end=date(2025, 3, 1)).contains(date(1999, 1, 1))

    def test_date_range_end_before_start(self):
        """Test that reversed bounds are rejected."""
        with pytest.raises(ValueError, match="Date range end cannot be before start"):
            DateRange(start=date(2025, 3, 2), end=date(2025, 3, 1))

    def test_analysis_period_months(self):
        """Test analysis period window lengths."""
        assert AnalysisPeriod.CURRENT.months == 1
        assert AnalysisPeriod("last-6").months == 6
        assert AnalysisPeriod.ALL.months is None


class TestTransactionFilter:
    """Tests for TransactionFilter model."""

    def test_month_requires_year(self):
        """Test that a month filter without a year is rejected."""
        with pytest.raises(ValueError, match="A month filter requires a year"):
            TransactionFilter(month=3)

    def test_month_bounds(self):
        """Test month must be 1..12."""
        with pytest.raises(ValueError):
            TransactionFilter(month=13, year=2025)
        with pytest.raises(ValueError):
            TransactionFilter(month=0, year=2025)

    def test_for_period(self):
        """Test building a filter from a period key."""
        criteria = TransactionFilter.for_period(PeriodKey(2025, 3), kind="expense")
        assert (criteria.year, criteria.month) == (2025, 3)
        assert criteria.kind == TransactionKind.EXPENSE


class TestCurrencyFormatting:
    """Tests for format_currency."""

    def test_thousands_separator(self):
        """Test grouping and two decimals."""
        assert format_currency(Decimal("1200")) == "$1,200.00"

    def test_custom_symbol_and_negative(self):
        """Test symbol placement for negative amounts."""
        assert format_currency(Decimal("-5.5"), "€") == "-€5.50"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            description="Budget set",
            details={"category": "Food", "limit": "400"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_set"
        assert log_dict["details"]["category"] == "Food"

    def test_audit_event_to_row(self):
        """Test conversion to a flat row."""
        event = AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            description="Persistence sync failed",
            error_message="disk full",
        )
        row = event.to_row()
        assert len(row) == 9  # Expected number of columns
        assert row[2] == "sync_failed"
        assert row[8] == "disk full"

    def test_audit_event_builder_transaction_added(self):
        """Test AuditEventBuilder.transaction_added."""
        transaction = make_transaction()
        event = AuditEventBuilder.transaction_added(transaction)
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == transaction.id
        assert event.entity_type == "transaction"

    def test_audit_event_builder_advisory(self):
        """Test exceeded advisories are logged as warnings."""
        advisory = Advisory(
            kind=AdvisoryKind.BUDGET_EXCEEDED,
            transaction_id="00000000000000000001",
            category="Food",
            amount=Decimal("50"),
            spent=Decimal("450"),
            limit=Decimal("400"),
            message="Budget exceeded for Food!",
        )
        event = AuditEventBuilder.advisory(advisory)
        assert event.event_type == AuditEventType.BUDGET_EXCEEDED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["spent"] == "450"

    def test_audit_event_builder_input_rejected(self):
        """Test rejected input records each issue."""
        issue = ValidationIssue(
            field="amount",
            issue_type="missing",
            message="Amount is required",
            severity="error",
        )
        event = AuditEventBuilder.input_rejected("transaction", [issue])
        assert event.event_type == AuditEventType.TRANSACTION_REJECTED
        assert event.severity == AuditSeverity.WARNING


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="category",
                    issue_type="unknown_category",
                    message="Unknown category",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Unknown category"]


class TestExportModels:
    """Tests for export shapes."""

    def test_download_name(self):
        """Test filename stem plus format extension."""
        payload = ExportPayload(
            export_format=ExportFormat.JSON,
            dataset=ExportDataset.EVERYTHING,
            filename=ExportDataset.EVERYTHING.filename,
            title="Finance Planner Export - EVERYTHING",
            generated_on=date(2025, 3, 15),
            bundle=KeyValueData(entries={"budgets": []}),
        )
        assert payload.download_name == "finance-planner-export.json"
        assert payload.is_tabular is False

    def test_key_value_pairs(self):
        """Test as_pairs gives JSON text per key."""
        data = KeyValueData(entries={"settings": {"currency_symbol": "$"}})
        assert data.as_pairs() == [("settings", '{"currency_symbol": "$"}')]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
