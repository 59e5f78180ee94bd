"""Query execution package."""

from finance_planner.queries.executor import (
    QueryEngine,
    QueryExecutionError,
    coerce_filter,
    matches,
    query,
)

__all__ = ["QueryEngine", "QueryExecutionError", "coerce_filter", "matches", "query"]
