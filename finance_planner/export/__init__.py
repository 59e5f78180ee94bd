"""Export payload preparation."""

from finance_planner.export.formatter import (
    ExportFormatter,
    UnsupportedExportOptionError,
    UnsupportedFormatError,
    to_table,
)

__all__ = [
    "ExportFormatter",
    "UnsupportedExportOptionError",
    "UnsupportedFormatError",
    "to_table",
]
