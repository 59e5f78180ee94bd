"""
Period helpers.

"Current month" is always derived from an injected clock so that every
aggregation stays a pure function of (ledger snapshot, clock).
"""

from datetime import date
from typing import Callable

from finance_planner.models.ledger import PeriodKey


Clock = Callable[[], date]


def current_period(clock: Clock) -> PeriodKey:
    """The clock's calendar month."""
    return PeriodKey.of(clock())


def trailing_periods(anchor: PeriodKey, count: int) -> list[PeriodKey]:
    """
    `count` consecutive periods ending at `anchor`, oldest first.

    trailing_periods(PeriodKey(2025, 2), 3) -> [2024-12, 2025-01, 2025-02]
    """
    if count < 1:
        return []
    return [anchor.shifted(-offset) for offset in range(count - 1, -1, -1)]
