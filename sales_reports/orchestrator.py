# sales_reports/orchestrator.py
"""
Report orchestrator for Sales Reports
Owns the filter state and composes filtering, aggregation, table views,
drill-down lookups and export into one report view.

Usage:
    report = ReportOrchestrator(data_source=ReportQueries())
    report.load()
    report.apply_date_range_preset('last_month')
    view = report.compute()
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .aggregator import Aggregator, DimensionGroup, TimeBucket
from .common import (
    ReportConstants, format_currency, get_date_preset_range, get_local_today,
    month_end, month_start, parse_iso_date, stringify_value
)
from .config import REPORT_CONFIG
from .excel_generator import export_to_excel, frame_from_records
from .export import MIME_TYPES, Column, ExportFormat, ExportResult, export_report
from .filters import (
    RecordFilter, count_unparseable_dates, date_range_predicate, status_predicate, text_predicate
)
from .models import DateRange, FetchResult, FilterState
from .table_view import TableViewEngine, VisiblePage

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

ORDER_EXPORT_COLUMNS = [
    Column('order_number', 'Order Number'),
    Column('dealer_name', 'Dealer'),
    Column('order_date', 'Date'),
    Column('status', 'Status', formatter=lambda v: str(v).title()),
    Column('net_amount', 'Amount', formatter=format_currency, number_format='#,##0.00'),
]

# Grouping dimension -> row field
DIMENSIONS = {
    'dealer': 'dealer_name',
    'region': 'region',
    'status': 'status',
}


# ==================== Result Types ====================

@dataclass(frozen=True)
class KPIMetrics:
    """Headline numbers for the selected period"""
    total_revenue: float = 0.0
    total_orders: int = 0
    new_customers: int = 0
    conversion_rate: float = 0.0
    delivered_orders: int = 0
    avg_order_value: float = 0.0
    revenue_change: Optional[float] = None
    orders_change: Optional[float] = None
    customers_change: Optional[float] = None
    conversion_change: Optional[float] = None


@dataclass(frozen=True)
class ReportView:
    kpis: KPIMetrics
    chart_series: List[TimeBucket]
    table: VisiblePage
    filter_state: FilterState
    previous_range: DateRange
    skipped_records: int = 0
    warnings: List[str] = field(default_factory=list)


# ==================== Orchestrator ====================

class ReportOrchestrator:
    """Single owner of the report's filter state"""

    def __init__(self,
                 data_source=None,
                 today_provider: Optional[Callable[[], date]] = None,
                 page_size: Optional[int] = None,
                 record_filter: Optional[RecordFilter] = None,
                 aggregator: Optional[Aggregator] = None):
        self.data_source = data_source
        self.today_provider = today_provider or get_local_today
        self.record_filter = record_filter or RecordFilter()
        self.aggregator = aggregator or Aggregator()

        self.orders_table = TableViewEngine(page_size=page_size)
        self.dealers_table = TableViewEngine(page_size=page_size, search_fields=('name', 'business_name'))

        self.orders: List[Record] = []
        self.dealers: List[Record] = []
        self.orders_result: FetchResult = FetchResult.pending()
        self.dealers_result: FetchResult = FetchResult.pending()

        self.filter_state = self._default_filter_state()

    def _default_filter_state(self) -> FilterState:
        today = self.today_provider()
        return FilterState(date_range=DateRange(month_start(today), month_end(today)))

    # ==================== Data ====================

    def load(self, date_range: Optional[DateRange] = None):
        """
        Fetch orders and dealers from the data source

        A failed fetch keeps the previously loaded collection so the report
        keeps rendering stale data; the failure stays visible through
        orders_result / dealers_result.
        """
        if self.data_source is None:
            logger.warning("No data source configured - nothing to load")
            return

        orders_result = self.data_source.get_orders(date_range)
        self.orders_result = orders_result
        if orders_result.is_success:
            self.orders = list(orders_result.data)
        else:
            logger.warning(f"⚠️ Orders not refreshed ({orders_result.status.value}): {orders_result.error}")

        dealers_result = self.data_source.get_dealers()
        self.dealers_result = dealers_result
        if dealers_result.is_success:
            self.dealers = list(dealers_result.data)
        else:
            logger.warning(f"⚠️ Dealers not refreshed ({dealers_result.status.value}): {dealers_result.error}")

        logger.info(f"📥 Loaded {len(self.orders)} orders, {len(self.dealers)} dealers")

    def set_orders(self, records: Sequence[Record]):
        self.orders = list(records)
        self.orders_result = FetchResult.success(self.orders)

    def set_dealers(self, records: Sequence[Record]):
        self.dealers = list(records)
        self.dealers_result = FetchResult.success(self.dealers)

    def _dealer_names(self) -> Dict[str, str]:
        return {stringify_value(d.get('id')): stringify_value(d.get('name')) for d in self.dealers}

    def _with_dealer_names(self, records: Sequence[Record]) -> List[Dict[str, Any]]:
        names = self._dealer_names()
        rows = []
        for record in records:
            row = dict(record.items())
            row['dealer_name'] = names.get(stringify_value(record.get('dealer_id')), '')
            rows.append(row)
        return rows

    @staticmethod
    def _most_recent_first(records: Sequence[Record]) -> List[Record]:
        # Stable: equal dates keep input order, undated records go last
        return sorted(
            records,
            key=lambda r: parse_iso_date(r.get('order_date')) or date.min,
            reverse=True,
        )

    def _filter_orders(self, state: FilterState) -> List[Dict[str, Any]]:
        # Dealer names are joined first so the search also matches them
        return self.record_filter.filter(self._with_dealer_names(self.orders), state)

    def filtered_orders(self) -> List[Dict[str, Any]]:
        """Orders passing the current filter state, with dealer names"""
        return self._filter_orders(self.filter_state)

    # ==================== Report ====================

    def compute(self) -> ReportView:
        """Recompute KPIs, chart series and the orders table page"""
        state = self.filter_state
        filtered = self.filtered_orders()

        previous_range = state.date_range.previous_period()
        previous = self._filter_orders(state.with_changes(date_range=previous_range))

        current_agg = self.aggregator.aggregate(filtered)
        previous_agg = self.aggregator.aggregate(previous)
        comparison = self.aggregator.compare(current_agg, previous_agg)

        kpis = KPIMetrics(
            total_revenue=current_agg.total_revenue,
            total_orders=current_agg.record_count,
            new_customers=current_agg.distinct_entity_count,
            conversion_rate=current_agg.rate_metric,
            delivered_orders=current_agg.rate_count,
            avg_order_value=current_agg.average_value,
            revenue_change=comparison.revenue_change,
            orders_change=comparison.orders_change,
            customers_change=comparison.customers_change,
            conversion_change=comparison.rate_change,
        )

        warnings = []
        if self.orders_result.is_failed:
            warnings.append(f"Orders could not be loaded: {self.orders_result.error}")
        if self.dealers_result.is_failed:
            warnings.append(f"Dealers could not be loaded: {self.dealers_result.error}")

        return ReportView(
            kpis=kpis,
            chart_series=self.aggregator.bucketize(filtered, state.group_by, state.date_range),
            table=self.orders_table.render(filtered),
            filter_state=state,
            previous_range=previous_range,
            skipped_records=self.skipped_record_count(),
            warnings=warnings,
        )

    def skipped_record_count(self) -> int:
        """Orders left out of every report for an unparseable date"""
        return count_unparseable_dates(self.orders, self.record_filter.date_field)

    def dealer_sales(self,
                     min_total: Optional[float] = None,
                     search_text: str = '',
                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Dealers ranked by sales over the filtered orders"""
        return self.aggregator.summarize_entities(
            self.filtered_orders(),
            self.dealers,
            min_total=min_total,
            search_text=search_text,
            search_fields=('name', 'business_name'),
            limit=limit,
        )

    def dealers_page(self, min_total: Optional[float] = None) -> VisiblePage:
        """Current page of the dealer table"""
        return self.dealers_table.render(self.dealer_sales(min_total=min_total))

    def revenue_by(self, dimension: str) -> List[DimensionGroup]:
        """
        Revenue share of the filtered orders per dealer, region or status

        Raises:
            ValueError: unknown dimension
        """
        if dimension not in DIMENSIONS:
            raise ValueError(f"Unknown dimension: {dimension}")

        regions = {stringify_value(d.get('id')): stringify_value(d.get('state')) for d in self.dealers}
        rows = self.filtered_orders()
        for row in rows:
            row['region'] = regions.get(stringify_value(row.get('dealer_id')), '')
        return self.aggregator.group_by_dimension(rows, DIMENSIONS[dimension])

    def recent_orders(self,
                      status: Optional[str] = None,
                      search_text: str = '',
                      limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Filtered orders with dealer names, most recent first"""
        rows = self.filtered_orders()
        matches_status = status_predicate(status)
        matches_text = text_predicate(search_text, ('order_number', 'dealer_name'))
        rows = [r for r in rows if matches_status(r) and matches_text(r)]
        rows = self._most_recent_first(rows)
        if limit is not None:
            rows = rows[:limit]
        return rows

    # ==================== Drill-down ====================

    def orders_for_dealer(self, dealer_id) -> FetchResult:
        """Orders of one dealer inside the current date range, newest first"""
        if self.orders_result.is_failed:
            return FetchResult.failed(self.orders_result.error or "Orders could not be loaded")

        key = stringify_value(dealer_id)
        in_range = date_range_predicate(self.filter_state.date_range, self.record_filter.date_field)
        rows = [
            r for r in self.orders
            if stringify_value(r.get('dealer_id')) == key and in_range(r)
        ]
        return FetchResult.success(self._most_recent_first(rows))

    def items_for_order(self, order_id) -> FetchResult:
        """Line items of one order from the data source"""
        if self.data_source is None:
            return FetchResult.failed("No data source configured")

        try:
            return self.data_source.get_order_items(order_id)
        except Exception as e:
            logger.error(f"❌ Error loading items for order {order_id}: {e}", exc_info=True)
            return FetchResult.failed(str(e))

    # ==================== Filter State ====================

    def _reset_pages(self):
        for table in (self.orders_table, self.dealers_table):
            table.go_to_page(0)
            table.collapse_all()

    def reset(self):
        """Back to the current month with no search, status or threshold"""
        self.filter_state = self._default_filter_state()
        self.orders_table.reset()
        self.dealers_table.reset()

    def apply_date_range_preset(self, name: str):
        """
        Apply a named date range anchored at today

        Raises:
            ValueError: unknown preset
        """
        from_date, to_date = get_date_preset_range(name, self.today_provider())
        self.filter_state = self.filter_state.with_changes(
            date_range=DateRange(from_date, to_date), preset=name
        )
        self._reset_pages()
        logger.debug(f"Preset {name}: {from_date} - {to_date}")

    def set_custom_range(self, from_value, to_value):
        """Set an explicit range (dates or ISO strings); inverted ranges give empty reports"""
        from_date = parse_iso_date(from_value)
        to_date = parse_iso_date(to_value)
        if from_date is None or to_date is None:
            raise ValueError(f"Invalid date range: {from_value!r} - {to_value!r}")

        self.filter_state = self.filter_state.with_changes(
            date_range=DateRange(from_date, to_date), preset=ReportConstants.PRESET_CUSTOM
        )
        self._reset_pages()

    def set_search_text(self, text: str):
        self.filter_state = self.filter_state.with_changes(search_text=text or '')
        self._reset_pages()

    def set_status_filter(self, status: Optional[str]):
        self.filter_state = self.filter_state.with_changes(status_filter=status or None)
        self._reset_pages()

    def set_numeric_threshold(self, threshold: Optional[float]):
        self.filter_state = self.filter_state.with_changes(numeric_threshold=threshold)
        self._reset_pages()

    def set_group_by(self, group_by: str):
        if group_by not in ReportConstants.TIME_GROUPS:
            raise ValueError(f"Unknown grouping: {group_by}")
        self.filter_state = self.filter_state.with_changes(group_by=group_by)
        self._reset_pages()

    # ==================== Export ====================

    def export(self,
               export_format,
               projection: Optional[Sequence[Column]] = None,
               filename: Optional[str] = None,
               on_export_start: Optional[Callable[[], None]] = None,
               on_export_complete: Optional[Callable[[], None]] = None) -> ExportResult:
        """Export the current filtered orders"""
        records = self.filtered_orders()
        return export_report(
            records,
            projection=projection if projection is not None else ORDER_EXPORT_COLUMNS,
            export_format=export_format,
            filename=filename,
            on_export_start=on_export_start,
            on_export_complete=on_export_complete,
        )

    def export_workbook(self, filename: Optional[str] = None) -> ExportResult:
        """Full report as one workbook: orders, dealer sales and the trend series"""
        state = self.filter_state
        filtered = self.filtered_orders()
        buckets = self.aggregator.bucketize(filtered, state.group_by, state.date_range)

        data = export_to_excel({
            'Orders': frame_from_records(filtered),
            'Dealers': frame_from_records(self.dealer_sales()),
            'Trend': pd.DataFrame([b.to_dict() for b in buckets]),
        })

        base = filename or REPORT_CONFIG["EXPORT_FILENAME"]
        logger.info(f"✅ Full report workbook ready ({len(data)} bytes)")
        return ExportResult(
            filename=f"{base}_full.xlsx",
            mime_type=MIME_TYPES[ExportFormat.EXCEL],
            data=data,
        )
