"""Summaries and trends computed from ledger snapshots."""

from finance_planner.analytics.aggregator import Aggregator, category_totals, sum_amounts
from finance_planner.analytics.periods import Clock, current_period, trailing_periods
from finance_planner.analytics.trends import TrendAnalyzer

__all__ = [
    "Aggregator",
    "Clock",
    "TrendAnalyzer",
    "category_totals",
    "current_period",
    "sum_amounts",
    "trailing_periods",
]
