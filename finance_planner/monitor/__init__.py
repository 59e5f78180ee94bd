"""Budget and large-expense advisories."""

from finance_planner.monitor.budget_monitor import BudgetMonitor, evaluate

__all__ = ["BudgetMonitor", "evaluate"]
