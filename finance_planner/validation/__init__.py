"""Input validation package."""

from finance_planner.validation.validator import (
    LedgerValidationError,
    TransactionValidator,
    issues_from_pydantic,
)

__all__ = ["LedgerValidationError", "TransactionValidator", "issues_from_pydantic"]
