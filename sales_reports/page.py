# sales_reports/page.py
"""
Sales Reports page
Filters, KPIs, charts, dealer / order tables with drill-down and exports.
All report logic lives in ReportOrchestrator; this module only renders.
"""

import logging
from typing import Callable, Optional

import pandas as pd
import streamlit as st

from .common import ReportConstants, format_currency, get_preset_label
from .config import REPORT_CONFIG
from .dashboard import (
    render_dimension_chart, render_kpi_metrics, render_status_chart, render_trend_chart
)
from .export import ExportFormat, ExportResult, export_session
from .orchestrator import ReportOrchestrator
from .queries import ReportQueries
from .state import StateManager
from .table_view import VisiblePage

logger = logging.getLogger(__name__)

FULL_WORKBOOK = 'workbook'

EXPORT_LABELS = {
    ExportFormat.CSV.value: "📄 CSV (current view)",
    ExportFormat.EXCEL.value: "📊 Excel (current view)",
    ExportFormat.PDF.value: "📑 PDF (current view)",
    FULL_WORKBOOK: "📚 Full report workbook",
}


def _default_factory() -> ReportOrchestrator:
    return ReportOrchestrator(data_source=ReportQueries())


# ==================== Filters ====================

def render_filters(report: ReportOrchestrator):
    """Date range, grouping, status, search and amount filters"""
    state = report.filter_state

    with st.expander("🔍 Filters", expanded=True):
        col1, col2, col3 = st.columns([1.2, 1, 1])

        presets = ReportConstants.DATE_PRESETS + [ReportConstants.PRESET_CUSTOM]
        with col1:
            preset = st.selectbox(
                "Date Range",
                presets,
                index=presets.index(state.preset) if state.preset in presets else 0,
                format_func=get_preset_label,
                key="sr_preset"
            )

        with col2:
            group_by = st.selectbox(
                "Group By",
                ReportConstants.TIME_GROUPS,
                index=ReportConstants.TIME_GROUPS.index(state.group_by),
                format_func=str.title,
                key="sr_group_by"
            )

        statuses = [ReportConstants.STATUS_ALL] + ReportConstants.ORDER_STATUSES
        with col3:
            status = st.selectbox(
                "Status",
                statuses,
                index=statuses.index(state.status_filter) if state.status_filter in statuses else 0,
                format_func=str.title,
                key="sr_status"
            )

        if preset == ReportConstants.PRESET_CUSTOM:
            dcol1, dcol2 = st.columns(2)
            with dcol1:
                from_date = st.date_input("From", value=state.date_range.from_date, key="sr_from")
            with dcol2:
                to_date = st.date_input("To", value=state.date_range.to_date, key="sr_to")
            if (from_date, to_date) != (state.date_range.from_date, state.date_range.to_date) \
                    or state.preset != ReportConstants.PRESET_CUSTOM:
                report.set_custom_range(from_date, to_date)
            if from_date > to_date:
                st.warning("⚠️ 'From' is after 'To' - the report is empty.")
        elif preset != state.preset:
            report.apply_date_range_preset(preset)

        scol1, scol2 = st.columns([2, 1])
        with scol1:
            search = st.text_input("Search", value=state.search_text,
                                   placeholder="Order number, dealer, status...", key="sr_search")
        with scol2:
            min_amount = st.number_input("Min Amount", min_value=0.0, step=1000.0,
                                         value=float(state.numeric_threshold or 0.0), key="sr_min_amount")

    if group_by != state.group_by:
        report.set_group_by(group_by)
    if (status if status != ReportConstants.STATUS_ALL else None) != state.status_filter:
        report.set_status_filter(status if status != ReportConstants.STATUS_ALL else None)
    if search != state.search_text:
        report.set_search_text(search)
    threshold = min_amount if min_amount > 0 else None
    if threshold != state.numeric_threshold:
        report.set_numeric_threshold(threshold)


# ==================== Tables ====================

def _render_pagination(table, page: VisiblePage, key: str):
    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("◀ Previous", key=f"{key}_prev", disabled=not page.has_previous):
            table.prev_page()
            st.rerun()
    with col2:
        st.caption(page.summary())
    with col3:
        if st.button("Next ▶", key=f"{key}_next", disabled=not page.has_next):
            table.next_page()
            st.rerun()


def _render_expand_toggle(table, key, prefix: str) -> bool:
    """Show/hide button for a row's detail; True when the detail is open"""
    expanded = table.is_expanded(key)
    if st.button("Hide details" if expanded else "Show details", key=f"{prefix}_{key}"):
        table.toggle_expand(key)
        st.rerun()
    return expanded


def _render_fetch_result(result, empty_message: str, limit: Optional[int] = None):
    if result.is_failed:
        st.error(f"❌ Could not load details: {result.error}")
    elif result.is_empty:
        st.caption(empty_message)
    else:
        rows = result.data[:limit] if limit else result.data
        st.dataframe(pd.DataFrame([dict(r.items()) for r in rows]),
                     use_container_width=True, hide_index=True)


def render_dealers_table(report: ReportOrchestrator):
    """Dealers ranked by sales; each row expands to the dealer's orders"""
    table = report.dealers_table
    col1, col2 = st.columns([2, 1])
    with col1:
        search = st.text_input("Search dealers", value=table.search_text, key="sr_dealer_search")
        if search != table.search_text:
            table.set_search_text(search)
    with col2:
        min_sales = st.number_input("Min Sales", min_value=0.0, step=10000.0, key="sr_dealer_min")

    page = report.dealers_page(min_total=min_sales or None)
    if not page.rows:
        st.info(page.summary())
        return

    for index, dealer in enumerate(page.rows, start=page.start):
        key = table.key_for(dealer, index)
        label = (f"{dealer.get('name') or 'Unknown'} | {dealer.get('order_count', 0)} orders | "
                 f"{format_currency(dealer.get('total_sales'), REPORT_CONFIG['CURRENCY'])}")
        with st.expander(label, expanded=table.is_expanded(key)):
            if _render_expand_toggle(table, key, "sr_dealer_orders"):
                _render_fetch_result(report.orders_for_dealer(dealer.get('id')),
                                     "No orders in the selected range.",
                                     limit=REPORT_CONFIG["DRILLDOWN_PAGE_SIZE"])

    _render_pagination(table, page, "sr_dealers")


def render_orders_table(report: ReportOrchestrator, page: VisiblePage):
    """Current page of filtered orders; each row expands to its items"""
    table = report.orders_table

    sort_fields = ['order_date', 'net_amount', 'order_number', 'status', 'dealer_name']
    col1, col2 = st.columns([2, 1])
    with col1:
        sort_field = st.selectbox("Sort by", [''] + sort_fields,
                                  format_func=lambda f: f.replace('_', ' ').title() or 'Default',
                                  key="sr_sort_field")
    with col2:
        if st.button("↕️ Toggle sort", key="sr_sort_toggle", disabled=not sort_field):
            table.set_sort(sort_field)
            st.rerun()

    if table.sort is not None:
        st.caption(f"Sorted by {table.sort.field} ({table.sort.direction.value})")

    if not page.rows:
        st.info(page.summary())
        return

    for index, order in enumerate(page.rows, start=page.start):
        key = table.key_for(order, index)
        label = (f"{order.get('order_number')} | {order.get('dealer_name') or '-'} | "
                 f"{order.get('order_date')} | {str(order.get('status')).title()} | "
                 f"{format_currency(order.get('net_amount'), REPORT_CONFIG['CURRENCY'])}")
        with st.expander(label, expanded=table.is_expanded(key)):
            if _render_expand_toggle(table, key, "sr_order_items"):
                _render_fetch_result(report.items_for_order(order.get('id')),
                                     "No items for this order.")

    _render_pagination(table, page, "sr_orders")


# ==================== Recent Orders ====================

RECENT_ORDER_COLUMNS = {
    'order_number': 'Order Number',
    'dealer_name': 'Dealer',
    'order_date': 'Date',
    'status': 'Status',
    'net_amount': 'Amount',
}


def render_recent_orders(report: ReportOrchestrator):
    """Most recent filtered orders with their own search and status filter"""
    statuses = [ReportConstants.STATUS_ALL] + ReportConstants.ORDER_STATUSES
    col1, col2 = st.columns([2, 1])
    with col1:
        search = st.text_input("Search recent orders", placeholder="Order number or dealer",
                               key="sr_recent_search")
    with col2:
        status = st.selectbox("Status", statuses, format_func=str.title, key="sr_recent_status")

    rows = report.recent_orders(
        status=None if status == ReportConstants.STATUS_ALL else status,
        search_text=search,
        limit=REPORT_CONFIG["RECENT_ORDERS_LIMIT"],
    )
    if not rows:
        st.info("ℹ️ No recent orders match.")
        return

    df = pd.DataFrame(rows).reindex(columns=list(RECENT_ORDER_COLUMNS))
    df['status'] = df['status'].map(lambda s: str(s).title() if s else '')
    df['net_amount'] = df['net_amount'].map(lambda v: format_currency(v, REPORT_CONFIG['CURRENCY']))
    st.dataframe(df.rename(columns=RECENT_ORDER_COLUMNS), use_container_width=True, hide_index=True)


# ==================== Export ====================

def _prepare_export(report: ReportOrchestrator, state: StateManager, choice: str) -> ExportResult:
    on_start = lambda: state.set_export_state(True)
    on_complete = lambda: state.set_export_state(False)

    if choice == FULL_WORKBOOK:
        with export_session(on_start, on_complete):
            return report.export_workbook()
    return report.export(choice, on_export_start=on_start, on_export_complete=on_complete)


def render_export_section(report: ReportOrchestrator, state: StateManager):
    """Format picker and a single prepare action; files are built only on demand"""
    st.markdown("#### 📥 Export")

    col1, col2 = st.columns([2, 1])
    with col1:
        choice = st.selectbox("Format", list(EXPORT_LABELS), format_func=EXPORT_LABELS.get,
                              key="sr_export_format")
    with col2:
        st.write("")
        prepare = st.button("📥 Prepare export", type="primary", use_container_width=True,
                            disabled=state.is_exporting(), key="sr_export_prepare")

    if not prepare:
        last_export = state.get_last_export()
        if last_export:
            st.caption(f"Last export: {last_export['filename']} "
                       f"at {last_export['timestamp']:%H:%M:%S}")
        return

    with st.spinner("Preparing export..."):
        try:
            result = _prepare_export(report, state, choice)
        except Exception as e:
            logger.error(f"Export failed ({choice}): {e}", exc_info=True)
            st.error(f"❌ Export failed: {e}")
            return

    state.record_export(result.filename, choice)
    st.download_button(
        label=f"💾 Download {result.filename}",
        data=result.data,
        file_name=result.filename,
        mime=result.mime_type,
        use_container_width=True,
        key="sr_export_download"
    )
    st.success("✅ Export ready")


# ==================== Page ====================

def render_reports_page(state: Optional[StateManager] = None,
                        orchestrator_factory: Optional[Callable[[], ReportOrchestrator]] = None):
    """Render the complete sales reports page"""
    state = state or StateManager()
    report = state.get_orchestrator(orchestrator_factory or _default_factory)

    header_col, refresh_col = st.columns([4, 1])
    with header_col:
        st.title("📊 Sales Reports")
    with refresh_col:
        if st.button("🔄 Refresh", use_container_width=True):
            state.refresh()
            if report.orders_result.is_failed:
                state.show_error(f"Refresh failed: {report.orders_result.error}")
            else:
                state.show_success("Data refreshed")
            st.rerun()

    message = state.pop_message()
    if message:
        if message["type"] == "success":
            st.success(f"✅ {message['text']}")
        else:
            st.error(f"❌ {message['text']}")

    render_filters(report)

    view = report.compute()
    date_range = view.filter_state.date_range
    st.caption(f"{get_preset_label(view.filter_state.preset)}: "
               f"{date_range.from_date:%d %b %Y} - {date_range.to_date:%d %b %Y} "
               f"(compared with {view.previous_range.from_date:%d %b %Y} - "
               f"{view.previous_range.to_date:%d %b %Y})")

    for warning in view.warnings:
        st.warning(f"⚠️ {warning}")
    if view.skipped_records:
        st.caption(f"{view.skipped_records} orders have no valid date and are not included.")

    render_kpi_metrics(view.kpis)

    chart_col, status_col = st.columns([2, 1])
    with chart_col:
        render_trend_chart(view.chart_series)
    with status_col:
        render_status_chart(report.filtered_orders())

    tab_orders, tab_recent, tab_dealers, tab_groups = st.tabs(
        ["📋 Orders", "🕒 Recent Orders", "🏪 Dealers", "🧭 Breakdown"]
    )

    with tab_orders:
        render_orders_table(report, view.table)
        render_export_section(report, state)

    with tab_recent:
        render_recent_orders(report)

    with tab_dealers:
        render_dealers_table(report)

    with tab_groups:
        dimension = st.radio("Group revenue by", ['dealer', 'region', 'status'],
                             format_func=str.title, horizontal=True, key="sr_dimension")
        render_dimension_chart(report.revenue_by(dimension), f"Revenue by {dimension.title()}")

    loaded_at = state.get_loaded_at()
    if loaded_at:
        st.caption(f"Data loaded at {loaded_at:%H:%M:%S}")
