"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (kind, date, category, amount)
- Amount must be a positive number
- Any of these failing rejects the input

STAGE 2 - SEMANTIC VALIDATION:
- Category belongs to the configured set for its kind
- Recurrence end date is not before the transaction date
- These only produce warnings; the input is still accepted

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, and the store decides whether to proceed.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import ValidationError

from finance_planner.config import LedgerSettings
from finance_planner.models.ledger import (
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


class LedgerValidationError(Exception):
    """
    Input was rejected. The ledger is unchanged.

    The full ValidationResult is available as `result`.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "Validation failed")


def issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    """Translate a pydantic ValidationError into ValidationIssues."""
    issues = []
    for detail in error.errors():
        field = ".".join(str(part) for part in detail.get("loc", ())) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{field}: {detail.get('msg', 'invalid value')}",
            severity="error",
        ))
    return issues


def _is_positive_amount(value: Any) -> bool:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return False
    return amount.is_finite() and amount > 0


class TransactionValidator:
    """
    Validates transaction drafts and budget input.

    Stage 1 rejects; stage 2 warns.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Ledger settings providing the category sets.
                     If None, category membership is not checked.
        """
        self._settings = settings

    def coerce_draft(
        self,
        draft: Union[TransactionDraft, dict],
    ) -> tuple[Optional[TransactionDraft], list[ValidationIssue]]:
        """
        Turn raw input into a TransactionDraft.

        Returns: (draft_or_none, issues)
        """
        if isinstance(draft, TransactionDraft):
            return draft, []
        try:
            return TransactionDraft.model_validate(draft), []
        except ValidationError as e:
            return None, issues_from_pydantic(e)

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.kind is None:
            issues.append(ValidationIssue(
                field="kind",
                issue_type="missing",
                message="Transaction kind (income or expense) is required",
                severity="error",
            ))

        if draft.transaction_date is None:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="missing",
                message="Transaction date is required",
                severity="error",
            ))

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif not _is_positive_amount(draft.amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a positive number",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues (warnings only)
        """
        issues = []

        if self._settings is not None and draft.kind is not None and draft.category:
            known = self._settings.categories_for(draft.kind.value)
            if draft.category not in known:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="unknown_category",
                    message=(
                        f"Category '{draft.category}' is not in the configured "
                        f"{draft.kind.value} categories"
                    ),
                    severity="warning",
                ))

        recurrence = draft.recurrence
        if (
            recurrence
            and recurrence.end_date
            and draft.transaction_date
            and recurrence.end_date < draft.transaction_date
        ):
            issues.append(ValidationIssue(
                field="recurrence.end_date",
                issue_type="inconsistent",
                message="Recurrence end date is before the transaction date",
                severity="warning",
            ))

        return issues

    def validate(self, draft: Union[TransactionDraft, dict]) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The transaction draft (or a raw mapping) to validate

        Returns:
            ValidationResult with all issues found
        """
        coerced, issues = self.coerce_draft(draft)
        if coerced is None:
            return ValidationResult(is_valid=False, issues=issues)

        schema_valid, schema_issues = self._validate_schema(coerced)
        issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        if schema_valid:
            issues.extend(self._validate_semantic(coerced))

        return ValidationResult(is_valid=schema_valid, issues=issues)

    def validate_budget(self, category: Any, amount: Any) -> ValidationResult:
        """Validate budget input (non-empty category, positive limit)."""
        issues = []

        if not isinstance(category, str) or not category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Budget category is required",
                severity="error",
            ))

        if amount is None:
            issues.append(ValidationIssue(
                field="limit",
                issue_type="missing",
                message="Budget amount is required",
                severity="error",
            ))
        elif isinstance(amount, bool) or not _is_positive_amount(amount):
            issues.append(ValidationIssue(
                field="limit",
                issue_type="invalid_value",
                message="Budget amount must be a positive number",
                severity="error",
            ))

        is_valid = not issues
        if (
            is_valid
            and self._settings is not None
            and category.strip() not in self._settings.expense_categories
        ):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{category.strip()}' is not a configured expense category",
                severity="warning",
            ))

        return ValidationResult(is_valid=is_valid, issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a short summary of validation results for display.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if not result.is_valid:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
