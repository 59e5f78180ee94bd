"""
Configuration Management for Finance Planner

Two layers of configuration live here:

1. AppSettings - process-level knobs read from environment variables
   (prefix FINANCE_PLANNER_) and an optional .env file via pydantic-settings.
2. LedgerSettings - the user-facing ledger preferences (currency symbol,
   category sets, notification thresholds). These are persisted together
   with the ledger and merged over the documented defaults on load.

DESIGN DECISION: Persisted ledger settings win per key, and unspecified keys
keep their defaults. The nested notification block is merged per key as well,
so an old snapshot that predates a new notification option still gets the
default for it. A persisted value that fails validation is dropped with a
warning and its default kept.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = structlog.get_logger(__name__)


DEFAULT_INCOME_CATEGORIES = [
    "Salary",
    "Freelance",
    "Investments",
    "Gifts",
    "Other Income",
]

DEFAULT_EXPENSE_CATEGORIES = [
    "Rent",
    "Food",
    "Transportation",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Education",
    "Shopping",
    "Other Expenses",
]


class NotificationSettings(BaseModel):
    """Advisory notification preferences."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    enabled: bool = Field(
        default=True,
        description="Master switch for reminders"
    )
    daily_time: str = Field(
        default="18:00",
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Daily reminder time (HH:MM, local)"
    )
    budget_alerts: bool = Field(
        default=True,
        description="Emit budget threshold advisories"
    )
    large_expense_alerts: bool = Field(
        default=True,
        description="Emit large-expense advisories"
    )
    large_expense_threshold: Decimal = Field(
        default=Decimal("100.00"),
        gt=0,
        description="Expense amount at or above which a large-expense advisory fires"
    )


class LedgerSettings(BaseModel):
    """
    User preferences stored alongside the ledger.

    This is a flat configuration object with documented defaults.
    Use `LedgerSettings.merged()` to apply persisted overrides.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        validate_assignment=True,
    )

    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol prefixed to formatted amounts"
    )
    first_day_of_week: int = Field(
        default=1,
        ge=0,
        le=6,
        description="0 = Sunday, 1 = Monday, ..."
    )
    dark_mode: bool = Field(
        default=False,
        description="Presentation hint, not used by the engine"
    )
    income_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCOME_CATEGORIES)
    )
    expense_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXPENSE_CATEGORIES)
    )
    notifications: NotificationSettings = Field(
        default_factory=NotificationSettings
    )

    @field_validator("income_categories", "expense_categories")
    @classmethod
    def drop_blank_categories(cls, v: list[str]) -> list[str]:
        """Strip names and drop blanks and duplicates, keeping first position."""
        seen: dict[str, None] = {}
        for name in v:
            name = name.strip()
            if name:
                seen.setdefault(name, None)
        return list(seen)

    @classmethod
    def merged(cls, overrides: Optional[dict[str, Any]] = None) -> "LedgerSettings":
        """
        Build settings from defaults with persisted overrides applied.

        Each override (and each notification option) is validated on its
        own; an invalid one is logged and the default kept.

        Args:
            overrides: Persisted settings mapping (possibly partial)

        Returns:
            Validated LedgerSettings
        """
        settings = cls()
        for key, value in (overrides or {}).items():
            if key == "notifications" and isinstance(value, dict):
                candidates = [{key: {name: item}} for name, item in value.items()]
            else:
                candidates = [{key: value}]
            for candidate in candidates:
                try:
                    settings = settings.with_overrides(candidate)
                except ValidationError as e:
                    logger.warning(
                        "ignored_invalid_setting",
                        setting=candidate,
                        error=str(e),
                    )
        return settings

    def with_overrides(self, overrides: Optional[dict[str, Any]] = None) -> "LedgerSettings":
        """Copy of these settings with overrides applied per key; unknown keys are ignored."""
        data = self.model_dump()
        for key, value in (overrides or {}).items():
            if key not in type(self).model_fields:
                continue
            if key == "notifications" and isinstance(value, dict):
                data["notifications"] = {**data["notifications"], **value}
            else:
                data[key] = value
        return type(self).model_validate(data)

    def categories_for(self, kind: str) -> list[str]:
        """Category list for a transaction kind ('income' or 'expense')."""
        if str(kind) == "income":
            return self.income_categories
        return self.expense_categories


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_PLANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level for structured logs"
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|json_file)$",
        description="Persistence backend used by create_ledger_components"
    )
    data_dir: Path = Field(
        default=Path("~/.finance-planner"),
        description="Directory for the json_file backend"
    )

    # Analytics knobs
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many recent transactions a monthly summary carries"
    )
    budget_warning_ratio: Decimal = Field(
        default=Decimal("0.9"),
        gt=0,
        le=1,
        description="Share of a budget at which an 'approaching' advisory fires"
    )
    audit_history_size: int = Field(
        default=500,
        ge=0,
        description="How many audit events the logger keeps in memory"
    )

    @property
    def resolved_data_dir(self) -> Path:
        """Data directory with the user home expanded."""
        return self.data_dir.expanduser()


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return AppSettings()
