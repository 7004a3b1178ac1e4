# sales_reports/excel_generator.py
"""
Excel Generator for Sales Reports
Creates a styled single-sheet workbook from a column projection

VERSION: 1.0.0

- Title row with report name and generation time
- Header row from projection labels
- Typed cells: numeric values stay numeric, text goes through formatters
- Alternating row fill, frozen header, auto column widths
"""

import logging
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .common import get_local_now, is_missing

logger = logging.getLogger(__name__)


# ==================== Style Definitions ====================

TITLE_BG = PatternFill(start_color="1ABC9C", end_color="1ABC9C", fill_type="solid")
HEADER_BG = PatternFill(start_color="2C3E50", end_color="2C3E50", fill_type="solid")
ALT_ROW_BG = PatternFill(start_color="F8F9FA", end_color="F8F9FA", fill_type="solid")

TITLE_FONT = Font(name='Arial', size=14, bold=True, color="FFFFFF")
HEADER_FONT = Font(name='Arial', size=10, bold=True, color="FFFFFF")
NORMAL_FONT = Font(name='Arial', size=9, color="000000")
FOOTER_FONT = Font(name='Arial', size=8, italic=True, color="7F8C8D")

THIN_BORDER = Border(
    left=Side(style='thin', color='BDC3C7'),
    right=Side(style='thin', color='BDC3C7'),
    top=Side(style='thin', color='BDC3C7'),
    bottom=Side(style='thin', color='BDC3C7')
)

CENTER_ALIGN = Alignment(horizontal='center', vertical='center', wrap_text=True)
LEFT_ALIGN = Alignment(horizontal='left', vertical='center', wrap_text=True)
RIGHT_ALIGN = Alignment(horizontal='right', vertical='center')

MIN_COLUMN_WIDTH = 8
MAX_COLUMN_WIDTH = 50


class ReportExcelGenerator:
    """Generate a styled Excel workbook for a projected record table"""

    def __init__(self):
        self.wb = None
        self.ws = None
        self.current_row = 1

    def generate(self,
                 headers: Sequence[str],
                 rows: Sequence[Sequence[Any]],
                 title: str = "Sales Report",
                 number_formats: Optional[Sequence[Optional[str]]] = None,
                 sheet_name: str = "Report") -> bytes:
        """
        Generate Excel workbook

        Args:
            headers: Column labels in projection order
            rows: Cell values per row; numbers are written as numeric cells
            title: Title shown above the table
            number_formats: Optional Excel number format per column
            sheet_name: Worksheet name

        Returns:
            Excel file as bytes
        """
        self.wb = Workbook()
        self.ws = self.wb.active
        self.ws.title = sheet_name[:31]
        self.current_row = 1

        column_count = max(len(headers), 1)
        formats = list(number_formats or [])

        self._create_title(title, column_count)
        header_row = self.current_row
        self._create_header(headers)
        self._create_rows(rows, formats)
        self._create_footer(column_count)
        self._set_column_widths(headers, rows)

        # Keep header visible while scrolling
        self.ws.freeze_panes = self.ws.cell(row=header_row + 1, column=1)

        buffer = BytesIO()
        self.wb.save(buffer)
        buffer.seek(0)

        return buffer.getvalue()

    def _create_title(self, title: str, column_count: int):
        """Create report title row"""
        if column_count > 1:
            self.ws.merge_cells(start_row=self.current_row, start_column=1,
                                end_row=self.current_row, end_column=column_count)
        cell = self.ws.cell(row=self.current_row, column=1, value=title)
        cell.font = TITLE_FONT
        cell.fill = TITLE_BG
        cell.alignment = CENTER_ALIGN
        self.ws.row_dimensions[self.current_row].height = 28
        self.current_row += 2

    def _create_header(self, headers: Sequence[str]):
        """Create table header row"""
        for col, header in enumerate(headers, 1):
            cell = self.ws.cell(row=self.current_row, column=col, value=header)
            cell.font = HEADER_FONT
            cell.fill = HEADER_BG
            cell.alignment = CENTER_ALIGN
            cell.border = THIN_BORDER

        self.ws.row_dimensions[self.current_row].height = 22
        self.current_row += 1

    def _create_rows(self, rows: Sequence[Sequence[Any]], formats: List[Optional[str]]):
        """Create data rows"""
        for idx, values in enumerate(rows, 1):
            fill = ALT_ROW_BG if idx % 2 == 0 else None

            for col, value in enumerate(values, 1):
                cell = self.ws.cell(row=self.current_row, column=col, value=value)
                cell.font = NORMAL_FONT
                cell.border = THIN_BORDER

                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    cell.alignment = RIGHT_ALIGN
                    fmt = formats[col - 1] if col - 1 < len(formats) else None
                    if fmt:
                        cell.number_format = fmt
                else:
                    cell.alignment = LEFT_ALIGN

                if fill:
                    cell.fill = fill

            self.current_row += 1

    def _create_footer(self, column_count: int):
        """Create footer with generation time"""
        self.current_row += 1
        if column_count > 1:
            self.ws.merge_cells(start_row=self.current_row, start_column=1,
                                end_row=self.current_row, end_column=column_count)
        cell = self.ws.cell(row=self.current_row, column=1,
                            value=f"Generated: {get_local_now().strftime('%Y-%m-%d %H:%M')}")
        cell.font = FOOTER_FONT

    def _set_column_widths(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]):
        """Fit column widths to content"""
        for col, header in enumerate(headers, 1):
            longest = len(str(header))
            for values in rows:
                if col - 1 < len(values) and values[col - 1] is not None:
                    longest = max(longest, len(str(values[col - 1])))
            width = min(max(longest + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
            self.ws.column_dimensions[get_column_letter(col)].width = width


# ==================== Multi-sheet Export ====================

def _cell_width(value: Any) -> int:
    """Display width of a cell; missing values are blank"""
    return 0 if is_missing(value) else len(str(value))


def export_to_excel(dataframes: Union[pd.DataFrame, Dict[str, pd.DataFrame]],
                    include_index: bool = False) -> bytes:
    """Export DataFrame(s) to Excel, one sheet per frame"""
    output = BytesIO()

    if isinstance(dataframes, pd.DataFrame):
        dataframes = {"Report": dataframes}

    try:
        with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
            for sheet_name, df in dataframes.items():
                safe_name = sheet_name[:31].replace('[', '').replace(']', '')
                df.to_excel(writer, sheet_name=safe_name, index=include_index)

                # Auto-adjust column widths
                worksheet = writer.sheets[safe_name]
                for idx, col in enumerate(df.columns):
                    max_len = max(
                        df[col].map(_cell_width).max() if len(df) > 0 else 0,
                        len(str(col))
                    ) + 2
                    worksheet.set_column(idx, idx, min(max_len, MAX_COLUMN_WIDTH))

        return output.getvalue()

    except Exception as e:
        logger.error(f"Error exporting to Excel: {e}")
        raise


def frame_from_records(records: Sequence[Mapping[str, Any]],
                       columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Build a DataFrame from mapping records (extra keys included)"""
    frame = pd.DataFrame([dict(r.items()) for r in records])
    if columns is not None:
        frame = frame.reindex(columns=list(columns))
    return frame
