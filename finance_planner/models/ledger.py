"""
Core Data Models for Finance Planner

These models define the strict schemas for all data flowing through the
ledger engine. They are designed to:
1. Enforce the ledger invariants at runtime (positive amounts, known kinds)
2. Provide clear validation error messages
3. Be serializable for persistence and export
4. Stay immutable once created, so query results are safe snapshots

DESIGN DECISION: Money is Decimal everywhere. Percentages are floats because
they are presentation figures, never summed back into money.
"""

import calendar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# Category filter value meaning "no category filter"
ALL_CATEGORIES = "all"


def format_currency(amount: Decimal, symbol: str = "$") -> str:
    """Render money with a symbol and thousands separators, e.g. '$1,200.00'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Income or expense classification of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class RecurrenceFrequency(str, Enum):
    """
    How often a recurring transaction repeats.

    Descriptive only: the engine never generates future occurrences.
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class AnalysisPeriod(str, Enum):
    """Scope of a category analysis."""
    CURRENT = "current"
    LAST_3 = "last-3"
    LAST_6 = "last-6"
    LAST_12 = "last-12"
    ALL = "all"

    @property
    def months(self) -> Optional[int]:
        """Number of trailing months covered, None for unbounded."""
        return {
            AnalysisPeriod.CURRENT: 1,
            AnalysisPeriod.LAST_3: 3,
            AnalysisPeriod.LAST_6: 6,
            AnalysisPeriod.LAST_12: 12,
        }.get(self)


class AdvisoryKind(str, Enum):
    """Non-blocking notifications raised after an expense is recorded."""
    BUDGET_APPROACHING = "approaching"
    BUDGET_EXCEEDED = "exceeded"
    LARGE_EXPENSE = "large-expense"


class MutationType(str, Enum):
    """Kinds of ledger store mutations published to subscribers."""
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_SET = "budget_set"
    BUDGET_DELETED = "budget_deleted"
    SETTINGS_UPDATED = "settings_updated"


# =============================================================================
# PERIODS
# =============================================================================

class PeriodKey(NamedTuple):
    """
    A (year, month) pair; month is 1..12.

    Tuple ordering gives chronological ordering.
    """
    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "PeriodKey":
        return cls(day.year, day.month)

    def shifted(self, months: int) -> "PeriodKey":
        """Period `months` months later (negative for earlier)."""
        index = self.year * 12 + (self.month - 1) + months
        return PeriodKey(index // 12, index % 12 + 1)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def label(self) -> str:
        """Short display label, e.g. 'Mar 2025'."""
        return self.first_day.strftime("%b %Y")

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


class DateRange(BaseModel):
    """Inclusive date bounds; either side may be open."""

    model_config = ConfigDict(frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None

    @model_validator(mode='after')
    def validate_bounds(self) -> 'DateRange':
        if self.start and self.end and self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self

    def contains(self, day: date) -> bool:
        if self.start and day < self.start:
            return False
        if self.end and day > self.end:
            return False
        return True


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Recurrence(BaseModel):
    """Recurrence descriptor attached to a transaction."""

    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    end_date: Optional[date] = None
    iterations: Optional[int] = Field(
        default=None,
        ge=1,
        description="How many times the transaction repeats"
    )


class TransactionDraft(BaseModel):
    """
    Input for a new transaction.

    Every field is optional so that missing values surface as validation
    issues from the TransactionValidator rather than as type errors.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Optional[TransactionKind] = None
    transaction_date: Optional[date] = None
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    recurrence: Optional[Recurrence] = None


class Transaction(BaseModel):
    """
    A finalized ledger transaction.

    Only the LedgerStore creates these. The id is immutable and unique
    across the store's lifetime.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Opaque sortable identifier"
    )

    kind: TransactionKind
    transaction_date: date
    amount: Decimal = Field(
        ...,
        gt=0,
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    recurrence: Optional[Recurrence] = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the transaction was recorded (audit/display only)"
    )

    @property
    def period(self) -> PeriodKey:
        return PeriodKey.of(self.transaction_date)

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible mapping, used for persistence and export."""
        return self.model_dump(mode="json")


class Budget(BaseModel):
    """A monthly spending limit for one category."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Monthly limit"
    )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# QUERY MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    Filter criteria for the query engine.

    All supplied predicates must hold. `month` needs `year`; `year` alone
    matches the whole year.
    """
    model_config = ConfigDict(frozen=True)

    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1, le=9999)
    kind: Optional[TransactionKind] = None
    category: Optional[str] = None
    date_range: Optional[DateRange] = None

    @model_validator(mode='after')
    def validate_month_needs_year(self) -> 'TransactionFilter':
        if self.month is not None and self.year is None:
            raise ValueError("A month filter requires a year")
        return self

    @classmethod
    def for_period(cls, period: PeriodKey, **kwargs: Any) -> "TransactionFilter":
        return cls(month=period.month, year=period.year, **kwargs)


# =============================================================================
# AGGREGATE RESULT MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    """Summed amount for a single category."""

    category: str
    total: Decimal


class MonthlySummary(BaseModel):
    """Income/expense picture for one month."""

    period: PeriodKey
    income: Decimal
    expenses: Decimal
    balance: Decimal
    recent_transactions: list[Transaction] = Field(
        default_factory=list,
        description="Most recent transactions overall, not scoped to the month"
    )
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)


class BudgetStatus(BaseModel):
    """Budget vs actual for one category in one month."""

    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal

    @property
    def percent_used(self) -> float:
        if self.limit == 0:
            return 0.0
        return float(self.spent / self.limit * 100)

    @property
    def is_over(self) -> bool:
        return self.remaining < 0

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class MonthlySeriesEntry(BaseModel):
    """Totals for one period that has data."""

    period: PeriodKey
    income: Decimal
    expenses: Decimal
    savings: Decimal
    transaction_count: int = Field(ge=0)

    def to_record(self) -> dict[str, Any]:
        """Flat record with the period split into year/month columns."""
        return {
            "year": self.period.year,
            "month": self.period.month,
            "income": str(self.income),
            "expenses": str(self.expenses),
            "savings": str(self.savings),
            "transaction_count": self.transaction_count,
        }


class CategoryShare(BaseModel):
    """Category total with its share of the grand total (0-100)."""

    category: str
    total: Decimal
    percentage: float = Field(ge=0.0, le=100.0)


class CategoryAnalysis(BaseModel):
    """Per-category breakdown for a kind over an analysis period."""

    kind: TransactionKind
    period: AnalysisPeriod
    categories: list[CategoryShare] = Field(default_factory=list)
    grand_total: Decimal


class TrendPoint(BaseModel):
    """One month in a category trend series."""

    period: PeriodKey
    label: str
    total: Decimal


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating a transaction draft or budget."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]


# =============================================================================
# MUTATION MODELS
# =============================================================================

class LedgerMutation(BaseModel):
    """A change applied to the ledger store, published to subscribers."""

    model_config = ConfigDict(frozen=True)

    mutation_type: MutationType
    transaction: Optional[Transaction] = None
    budget: Optional[Budget] = None
    key: Optional[str] = Field(
        default=None,
        description="Transaction id or budget category the mutation targeted"
    )


class Advisory(BaseModel):
    """
    A non-blocking notification about a recorded expense.

    Advisories never alter store state; whether to display them is up to
    the presentation layer.
    """
    model_config = ConfigDict(frozen=True)

    kind: AdvisoryKind
    transaction_id: str
    category: str
    amount: Decimal
    spent: Optional[Decimal] = Field(
        default=None,
        description="Category spend in the period, for budget advisories"
    )
    limit: Optional[Decimal] = Field(
        default=None,
        description="Budget limit or large-expense threshold"
    )
    message: str


class MutationReceipt(BaseModel):
    """
    What a store mutation did.

    `found` is False when an update/delete targeted an unknown key.
    `synced` is False when persistence failed; the in-memory change
    still stands in that case.
    """

    mutation_type: MutationType
    found: bool = True
    transaction: Optional[Transaction] = None
    budget: Optional[Budget] = None
    advisories: list[Advisory] = Field(default_factory=list)
    synced: bool = True
    sync_error: Optional[str] = None
