"""
Export Shapes

The export formatter never produces bytes. It hands one of two generic shapes
to an external sink (CSV writer, JSON dumper, PDF renderer):

- TabularData: ordered headers plus rows of strings
- KeyValueData: a mapping of section name to JSON-compatible value
"""

import json
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from finance_planner.models.ledger import DateRange


class ExportFormat(str, Enum):
    """Target formats a downstream sink knows how to render."""
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"


class ExportDataset(str, Enum):
    """Logical dataset selector."""
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    REPORTS = "reports"
    EVERYTHING = "everything"

    @property
    def filename(self) -> str:
        if self is ExportDataset.EVERYTHING:
            return "finance-planner-export"
        return self.value


class ExportRange(str, Enum):
    """Named date-range presets for exports."""
    CURRENT_MONTH = "current-month"
    LAST_MONTH = "last-month"
    LAST_3_MONTHS = "last-3-months"
    LAST_6_MONTHS = "last-6-months"
    CURRENT_YEAR = "current-year"
    ALL = "all"


class TabularData(BaseModel):
    """Header list plus rows of stringified cells."""

    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def row_count(self) -> int:
        return len(self.rows)


class KeyValueData(BaseModel):
    """Named sections of plain JSON-compatible values."""

    entries: dict[str, Any] = Field(default_factory=dict)

    def as_pairs(self) -> list[tuple[str, str]]:
        """(key, JSON text) pairs for delimited sinks."""
        return [
            (key, json.dumps(value, default=str))
            for key, value in self.entries.items()
        ]


class ExportPayload(BaseModel):
    """Everything a sink needs to render one export."""

    export_format: ExportFormat
    dataset: ExportDataset
    filename: str
    title: str
    generated_on: date
    date_range: Optional[DateRange] = None
    table: Optional[TabularData] = None
    bundle: Optional[KeyValueData] = None

    @property
    def is_tabular(self) -> bool:
        return self.table is not None

    @property
    def is_empty(self) -> bool:
        if self.table is not None:
            return self.table.is_empty
        return not (self.bundle and self.bundle.entries)

    @property
    def download_name(self) -> str:
        """Filename with the format extension."""
        return f"{self.filename}.{self.export_format.value}"
