# sales_reports/pdf_generator.py
"""
PDF Generator for Sales Reports
Renders a projected record table as a titled, printable document

Version: 1.0.0

- DejaVu fonts loaded from the project fonts/ directory when present
  (falls back to Helvetica)
- Landscape A4 for wide projections
- Header row repeated on every page, page numbers in the footer
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .common import get_local_now

logger = logging.getLogger(__name__)

# Projections wider than this switch to landscape
LANDSCAPE_COLUMN_THRESHOLD = 6


class ReportPDFGenerator:
    """Generate a PDF table report"""

    _registered_fonts = set()

    def __init__(self, fonts_dir: Path = None):
        self.fonts_dir = fonts_dir or self._get_project_root() / 'fonts'
        self.font_available = self._setup_fonts()

    @staticmethod
    def _get_project_root() -> Path:
        # sales_reports/pdf_generator.py -> project root is 2 levels up
        return Path(__file__).resolve().parent.parent

    def _setup_fonts(self) -> bool:
        """
        Register DejaVu fonts for non-Latin text (e.g. the rupee sign)

        Returns:
            True if fonts registered successfully, False otherwise
        """
        regular = self.fonts_dir / 'DejaVuSans.ttf'
        bold = self.fonts_dir / 'DejaVuSans-Bold.ttf'

        if not regular.exists():
            logger.debug(f"DejaVuSans.ttf not found in {self.fonts_dir}, using Helvetica")
            return False

        try:
            if 'DejaVuSans' not in self._registered_fonts:
                pdfmetrics.registerFont(TTFont('DejaVuSans', str(regular)))
                self._registered_fonts.add('DejaVuSans')

            if 'DejaVuSans-Bold' not in self._registered_fonts:
                # Use regular font as bold if bold not found
                pdfmetrics.registerFont(TTFont('DejaVuSans-Bold', str(bold if bold.exists() else regular)))
                self._registered_fonts.add('DejaVuSans-Bold')

            logger.info("✅ DejaVu fonts registered successfully")
            return True

        except Exception as e:
            logger.error(f"❌ Font setup error: {e}", exc_info=True)
            return False

    def get_custom_styles(self) -> Dict[str, Any]:
        """Paragraph styles for title, cells and footer"""
        styles = getSampleStyleSheet()

        base_font = 'DejaVuSans' if self.font_available else 'Helvetica'
        bold_font = 'DejaVuSans-Bold' if self.font_available else 'Helvetica-Bold'

        styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=styles['Title'],
            fontName=bold_font,
            fontSize=16,
            alignment=TA_CENTER,
            spaceAfter=6,
            textColor=colors.HexColor('#1a1a1a')
        ))

        styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=styles['Normal'],
            fontName=base_font,
            fontSize=9,
            alignment=TA_CENTER,
            textColor=colors.grey
        ))

        styles.add(ParagraphStyle(
            name='TableCell',
            parent=styles['Normal'],
            fontName=base_font,
            fontSize=8,
            leading=10,
            alignment=TA_LEFT
        ))

        styles.add(ParagraphStyle(
            name='TableCellRight',
            parent=styles['Normal'],
            fontName=base_font,
            fontSize=8,
            leading=10,
            alignment=TA_RIGHT
        ))

        styles.add(ParagraphStyle(
            name='TableHeader',
            parent=styles['Normal'],
            fontName=bold_font,
            fontSize=8,
            leading=10,
            alignment=TA_CENTER,
            textColor=colors.whitesmoke
        ))

        return styles

    def generate(self,
                 headers: Sequence[str],
                 rows: Sequence[Sequence[str]],
                 title: str,
                 numeric_columns: Sequence[int] = ()) -> bytes:
        """
        Generate PDF

        Args:
            headers: Column labels in projection order
            rows: Display strings per row
            title: Document title
            numeric_columns: Column indexes to right-align

        Returns:
            PDF file as bytes
        """
        buffer = BytesIO()
        page_size = landscape(A4) if len(headers) > LANDSCAPE_COLUMN_THRESHOLD else A4

        doc = SimpleDocTemplate(
            buffer,
            pagesize=page_size,
            rightMargin=12 * mm,
            leftMargin=12 * mm,
            topMargin=15 * mm,
            bottomMargin=15 * mm,
            title=title
        )

        styles = self.get_custom_styles()
        base_font = 'DejaVuSans' if self.font_available else 'Helvetica'

        story = [
            Paragraph(escape(title), styles['ReportTitle']),
            Paragraph(f"Generated: {get_local_now().strftime('%Y-%m-%d %H:%M')} | "
                      f"{len(rows)} records", styles['ReportSubtitle']),
            Spacer(1, 6 * mm),
        ]

        if headers:
            story.append(self._build_table(headers, rows, styles, doc.width, set(numeric_columns)))
        else:
            story.append(Paragraph("No columns selected", styles['TableCell']))

        def draw_footer(canvas, document):
            canvas.saveState()
            canvas.setFont(base_font, 7)
            canvas.setFillColor(colors.grey)
            canvas.drawRightString(document.pagesize[0] - 12 * mm, 8 * mm, f"Page {document.page}")
            canvas.restoreState()

        doc.build(story, onFirstPage=draw_footer, onLaterPages=draw_footer)

        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    def _build_table(self, headers, rows, styles, available_width, numeric_columns) -> Table:
        """Build the data table; header repeats on each page"""
        header_cells = [Paragraph(escape(str(h)), styles['TableHeader']) for h in headers]

        data = [header_cells]
        for values in rows:
            data.append([
                Paragraph(escape(str(v)),
                          styles['TableCellRight'] if idx in numeric_columns else styles['TableCell'])
                for idx, v in enumerate(values)
            ])

        if not rows:
            empty = [Paragraph("No data available", styles['TableCell'])]
            data.append(empty + [''] * (len(headers) - 1))

        column_count = max(len(headers), 1)
        col_widths = [available_width / column_count] * column_count

        table = Table(data, colWidths=col_widths, repeatRows=1)

        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#2C3E50')),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
            ('TOPPADDING', (0, 0), (-1, -1), 3),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
        ]
        for row_idx in range(2, len(data), 2):
            style.append(('BACKGROUND', (0, row_idx), (-1, row_idx), colors.HexColor('#F8F9FA')))
        if not rows and len(headers) > 1:
            style.append(('SPAN', (0, 1), (-1, 1)))

        table.setStyle(TableStyle(style))
        return table
