"""Configuration package."""

from finance_planner.config.settings import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    AppSettings,
    LedgerSettings,
    NotificationSettings,
    get_settings,
)

__all__ = [
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "AppSettings",
    "LedgerSettings",
    "NotificationSettings",
    "get_settings",
]
