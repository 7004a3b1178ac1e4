# sales_reports/__init__.py
"""
Sales Reports Module - VERSION 1.0

KPI summaries, chart series and paginated tables over order / dealer
records, with date-range filtering, drill-down and CSV / Excel / PDF export.

Location: sales_reports/

Structure:
├── __init__.py          # This file - module exports
├── config.py            # Environment-driven configuration
├── common.py            # Constants, dates, presets, formatting
├── models.py            # Records, DateRange, FilterState, FetchResult
├── filters.py           # Record predicates and RecordFilter
├── aggregator.py        # KPIs, time buckets, comparisons, group summaries
├── table_view.py        # Search / sort / paging / expansion state
├── excel_generator.py   # Styled XLSX output
├── pdf_generator.py     # PDF output
├── export.py            # Projection, serializer, export hooks
├── db.py                # SQLAlchemy engine singleton
├── queries.py           # SQL data source
├── orchestrator.py      # Filter state owner, report view
├── state.py             # Streamlit session state
├── dashboard.py         # KPI cards and Plotly charts
└── page.py              # Reports page

Usage:
    from sales_reports import ReportOrchestrator, ReportQueries
    from sales_reports.page import render_reports_page
"""

from .models import (
    OrderRecord,
    Dealer,
    OrderItem,
    DateRange,
    FilterState,
    FetchResult,
    FetchStatus,
)
from .filters import RecordFilter
from .aggregator import Aggregator, Aggregate, PeriodComparison, TimeBucket, DimensionGroup
from .table_view import TableViewEngine, TableAction, TableActionType, VisiblePage, SortDirection
from .export import Column, ExportFormat, ExportResult, ExportSerializer, export_report, default_projection
from .queries import ReportQueries
from .orchestrator import ReportOrchestrator, ReportView, KPIMetrics

__all__ = [
    # Records and state
    'OrderRecord',
    'Dealer',
    'OrderItem',
    'DateRange',
    'FilterState',
    'FetchResult',
    'FetchStatus',

    # Engine
    'RecordFilter',
    'Aggregator',
    'Aggregate',
    'PeriodComparison',
    'TimeBucket',
    'DimensionGroup',
    'TableViewEngine',
    'TableAction',
    'TableActionType',
    'VisiblePage',
    'SortDirection',

    # Export
    'Column',
    'ExportFormat',
    'ExportResult',
    'ExportSerializer',
    'export_report',
    'default_projection',

    # Data source and orchestration
    'ReportQueries',
    'ReportOrchestrator',
    'ReportView',
    'KPIMetrics',
]

__version__ = '1.0.0'
