# sales_reports/export.py
"""
Export for Sales Reports
Serializes the current record view to CSV, Excel or PDF

Version: 1.0.0

- Column projection controls order, labels and display formatting
- Missing keys become empty cells
- Export start/complete hooks fire exactly once each, also on failure
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence

import pandas as pd

from .common import is_missing, is_numeric, stringify_value
from .config import REPORT_CONFIG
from .excel_generator import ReportExcelGenerator
from .pdf_generator import ReportPDFGenerator

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


# ==================== Types ====================

class ExportFormat(Enum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"

    @classmethod
    def from_value(cls, value) -> 'ExportFormat':
        """Accept an ExportFormat or its name ('csv', 'excel', 'xlsx', 'pdf')"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == 'xlsx':
            text = 'excel'
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unknown export format: {value}") from None


FILE_EXTENSIONS = {
    ExportFormat.CSV: 'csv',
    ExportFormat.EXCEL: 'xlsx',
    ExportFormat.PDF: 'pdf',
}

MIME_TYPES = {
    ExportFormat.CSV: 'text/csv',
    ExportFormat.EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    ExportFormat.PDF: 'application/pdf',
}


@dataclass(frozen=True)
class Column:
    """One projected column: record key, header label, display options"""
    key: str
    label: str
    formatter: Optional[Callable[[Any], str]] = None
    number_format: Optional[str] = None

    def display(self, value: Any) -> str:
        if self.formatter is not None and not is_missing(value):
            return self.formatter(value)
        return stringify_value(value)


@dataclass(frozen=True)
class ExportResult:
    filename: str
    mime_type: str
    data: bytes


# ==================== Projection ====================

def default_projection(records: Sequence[Record]) -> List[Column]:
    """Keys of the first record, labelled with the key capitalized"""
    if not records:
        return []
    return [Column(key=str(key), label=str(key)[:1].upper() + str(key)[1:])
            for key in records[0].keys()]


def _normalize(value: Any) -> Any:
    """Decimal and numpy scalars to plain Python values"""
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        try:
            return value.item()
        except (TypeError, ValueError):
            return value
    return value


def project_rows(records: Sequence[Record], projection: Sequence[Column]) -> List[List[Any]]:
    """Raw cell values per record in projection order; missing keys give None"""
    return [[_normalize(record.get(column.key)) for column in projection] for record in records]


# ==================== Serializer ====================

class ExportSerializer:
    """Turn records + projection into file bytes"""

    def __init__(self, excel_generator: ReportExcelGenerator = None,
                 pdf_generator: ReportPDFGenerator = None):
        self.excel_generator = excel_generator or ReportExcelGenerator()
        self._pdf_generator = pdf_generator

    @property
    def pdf_generator(self) -> ReportPDFGenerator:
        # Font registration is deferred until the first PDF
        if self._pdf_generator is None:
            self._pdf_generator = ReportPDFGenerator()
        return self._pdf_generator

    @staticmethod
    def _display_rows(records, projection) -> List[List[str]]:
        return [
            [column.display(value) for column, value in zip(projection, values)]
            for values in project_rows(records, projection)
        ]

    def to_csv(self, records: Sequence[Record], projection: Sequence[Column]) -> bytes:
        """UTF-8 CSV; header only when there are no records"""
        labels = [column.label for column in projection]
        df = pd.DataFrame(self._display_rows(records, projection), columns=labels, dtype=object)
        return df.to_csv(index=False, lineterminator='\n').encode('utf-8')

    def to_excel(self, records: Sequence[Record], projection: Sequence[Column],
                 title: str = "Sales Report") -> bytes:
        """XLSX with numeric cells kept numeric"""
        rows = []
        for values in project_rows(records, projection):
            row = []
            for column, value in zip(projection, values):
                if is_numeric(value):
                    row.append(value)
                elif is_missing(value):
                    row.append(None)
                else:
                    row.append(column.display(value))
            rows.append(row)

        return self.excel_generator.generate(
            headers=[column.label for column in projection],
            rows=rows,
            title=title,
            number_formats=[column.number_format for column in projection],
        )

    def to_pdf(self, records: Sequence[Record], projection: Sequence[Column],
               title: str = "Sales Report") -> bytes:
        numeric_columns = [
            idx for idx, column in enumerate(projection)
            if records and all(is_numeric(_normalize(r.get(column.key)))
                               for r in records if not is_missing(r.get(column.key)))
        ]
        return self.pdf_generator.generate(
            headers=[column.label for column in projection],
            rows=self._display_rows(records, projection),
            title=title,
            numeric_columns=numeric_columns,
        )

    def serialize(self, records: Sequence[Record], projection: Sequence[Column],
                  export_format, title: str = "Sales Report") -> bytes:
        """
        Serialize records in the given format

        Raises:
            ValueError: unknown export format
        """
        fmt = ExportFormat.from_value(export_format)
        if fmt == ExportFormat.CSV:
            return self.to_csv(records, projection)
        if fmt == ExportFormat.EXCEL:
            return self.to_excel(records, projection, title)
        return self.to_pdf(records, projection, title)


# ==================== Export Session ====================

@contextmanager
def export_session(on_start: Optional[Callable[[], None]] = None,
                   on_complete: Optional[Callable[[], None]] = None) -> Iterator[None]:
    """Call on_start on entry and on_complete on exit, exactly once each"""
    if on_start:
        on_start()
    try:
        yield
    finally:
        if on_complete:
            on_complete()


def export_title(filename: str) -> str:
    """'sales_report' -> 'SALES REPORT'"""
    return filename.replace('_', ' ').upper()


def export_report(records: Sequence[Record],
                  projection: Optional[Sequence[Column]] = None,
                  export_format=ExportFormat.CSV,
                  filename: Optional[str] = None,
                  title: Optional[str] = None,
                  on_export_start: Optional[Callable[[], None]] = None,
                  on_export_complete: Optional[Callable[[], None]] = None,
                  serializer: Optional[ExportSerializer] = None) -> ExportResult:
    """
    Export records as a downloadable file

    Args:
        records: Records to export (the current filtered view)
        projection: Columns to export; defaults to the first record's keys
        export_format: csv, excel or pdf
        filename: Base name without extension
        title: Document title for Excel/PDF; defaults to the upper-cased filename
        on_export_start / on_export_complete: Hooks around serialization

    Returns:
        ExportResult with filename, mime type and bytes

    Raises:
        ValueError: unknown export format
    """
    base = filename or REPORT_CONFIG["EXPORT_FILENAME"]
    serializer = serializer or ExportSerializer()

    with export_session(on_export_start, on_export_complete):
        fmt = ExportFormat.from_value(export_format)
        records = list(records)
        columns = list(projection) if projection is not None else default_projection(records)

        logger.info(f"📤 Exporting {len(records)} records as {fmt.value}")
        try:
            data = serializer.serialize(records, columns, fmt, title or export_title(base))
        except Exception as e:
            logger.error(f"❌ Export failed ({fmt.value}): {e}", exc_info=True)
            raise

    logger.info(f"✅ Export ready: {base}.{FILE_EXTENSIONS[fmt]} ({len(data)} bytes)")
    return ExportResult(
        filename=f"{base}.{FILE_EXTENSIONS[fmt]}",
        mime_type=MIME_TYPES[fmt],
        data=data,
    )
