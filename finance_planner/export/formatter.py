"""
Export Formatter

Turns ledger data into sink-neutral shapes. Rendering to actual CSV, JSON or
PDF bytes is left to the caller; this module only decides WHAT goes into an
export and in which column order.
"""

import json
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from finance_planner.analytics.aggregator import Aggregator
from finance_planner.analytics.periods import Clock, current_period
from finance_planner.audit import AuditLogger
from finance_planner.ledger import LedgerStore
from finance_planner.models.export import (
    ExportDataset,
    ExportFormat,
    ExportPayload,
    ExportRange,
    KeyValueData,
    TabularData,
)
from finance_planner.models.ledger import DateRange, TransactionFilter, format_currency
from finance_planner.queries import query


# Columns rendered with the currency symbol in PDF exports
MONEY_COLUMNS = frozenset({
    "amount",
    "total",
    "limit",
    "spent",
    "remaining",
    "income",
    "expenses",
    "savings",
})

ExportScope = Union[DateRange, ExportRange, str, None]


class UnsupportedExportOptionError(ValueError):
    """An export selector (format, dataset or range preset) outside its known values."""

    def __init__(self, option: str, value: str):
        self.option = option
        self.value = value
        super().__init__(f"Unsupported export {option}: {value}")


class UnsupportedFormatError(UnsupportedExportOptionError):
    """The requested export format is not one a sink can render."""

    def __init__(self, export_format: str):
        self.export_format = export_format
        super().__init__("format", export_format)


def _cell(value: Any, header: str, currency_symbol: Optional[str]) -> str:
    """Stringify one cell; currency_symbol is set only for money-aware targets."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if currency_symbol is not None and header in MONEY_COLUMNS:
        try:
            return format_currency(Decimal(str(value)), currency_symbol)
        except InvalidOperation:
            return str(value)
    return str(value)


def to_table(
    records: list[dict[str, Any]],
    currency_symbol: Optional[str] = None,
) -> TabularData:
    """
    Tabulate records using the keys of the first record as headers.

    Later records missing a header key get an empty cell.
    """
    if not records:
        return TabularData()

    headers = list(records[0].keys())
    rows = [
        [_cell(record.get(header), header, currency_symbol) for header in headers]
        for record in records
    ]
    return TabularData(headers=headers, rows=rows)


class ExportFormatter:
    """
    Prepares export payloads from the ledger store.

    Usage:
        formatter = ExportFormatter(store)
        payload = formatter.prepare("csv", "transactions", "last-month")
        write_csv(payload.download_name, payload.table)
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock = date.today,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._clock = clock
        self._audit = audit_logger or store.audit_logger
        self._aggregator = Aggregator(store, clock)

    def resolve_range(self, scope: ExportScope) -> Optional[DateRange]:
        """
        Turn a preset name or explicit range into a DateRange.

        None and the `all` preset mean no date restriction.

        Raises:
            UnsupportedExportOptionError: If the preset name is unknown
        """
        if scope is None or isinstance(scope, DateRange):
            return scope

        preset = self._parse(ExportRange, "range", scope)
        today = self._clock()
        period = current_period(self._clock)

        if preset == ExportRange.CURRENT_MONTH:
            return DateRange(start=period.first_day, end=period.last_day)
        if preset == ExportRange.LAST_MONTH:
            previous = period.shifted(-1)
            return DateRange(start=previous.first_day, end=previous.last_day)
        if preset == ExportRange.LAST_3_MONTHS:
            return DateRange(start=period.shifted(-3).first_day, end=period.last_day)
        if preset == ExportRange.LAST_6_MONTHS:
            return DateRange(start=period.shifted(-6).first_day, end=period.last_day)
        if preset == ExportRange.CURRENT_YEAR:
            return DateRange(start=date(today.year, 1, 1), end=date(today.year, 12, 31))
        return None

    def prepare(
        self,
        export_format: Union[ExportFormat, str],
        dataset: Union[ExportDataset, str],
        scope: ExportScope = None,
    ) -> ExportPayload:
        """
        Build the payload for one export.

        Args:
            export_format: csv, json or pdf
            dataset: transactions, budgets, reports or everything
            scope: Date restriction for the transactions dataset

        Returns:
            ExportPayload with a table (tabular datasets) or a bundle (everything)

        Raises:
            UnsupportedFormatError: If the format is not csv, json or pdf
            UnsupportedExportOptionError: If the dataset or range preset is unknown
        """
        try:
            export_format = ExportFormat(export_format)
        except ValueError:
            self._audit.log_export_rejected(str(export_format))
            raise UnsupportedFormatError(str(export_format))

        dataset = self._parse(ExportDataset, "dataset", dataset)
        date_range = self.resolve_range(scope) if dataset == ExportDataset.TRANSACTIONS else None
        settings = self._store.settings

        table = None
        bundle = None
        if dataset == ExportDataset.EVERYTHING:
            bundle = KeyValueData(entries={
                "transactions": [t.to_record() for t in self._store.transactions],
                "budgets": [b.to_record() for b in self._store.budgets],
                "settings": settings.model_dump(mode="json"),
            })
            row_count = len(bundle.entries)
        else:
            symbol = settings.currency_symbol if export_format == ExportFormat.PDF else None
            table = to_table(self._records(dataset, date_range), symbol)
            row_count = table.row_count

        payload = ExportPayload(
            export_format=export_format,
            dataset=dataset,
            filename=dataset.filename,
            title=f"Finance Planner Export - {dataset.value.upper()}",
            generated_on=self._clock(),
            date_range=date_range,
            table=table,
            bundle=bundle,
        )
        self._audit.log_export_prepared(dataset.value, export_format.value, row_count)
        return payload

    def _parse(self, enum_type, option: str, value):
        """Coerce a selector into its enum, auditing and raising on unknown values."""
        try:
            return enum_type(value)
        except ValueError:
            self._audit.log_export_rejected(str(value), option)
            raise UnsupportedExportOptionError(option, str(value))

    def _records(
        self,
        dataset: ExportDataset,
        date_range: Optional[DateRange],
    ) -> list[dict[str, Any]]:
        if dataset == ExportDataset.TRANSACTIONS:
            transactions = query(self._store.transactions, TransactionFilter(date_range=date_range))
            return [t.to_record() for t in transactions]
        if dataset == ExportDataset.BUDGETS:
            return [b.to_record() for b in self._store.budgets]
        return [entry.to_record() for entry in self._aggregator.monthly_series()]
