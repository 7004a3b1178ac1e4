# sales_reports/dashboard.py
"""
Sales Reports - Dashboard components

Contains the chart and KPI pieces of the reports page:
- KPI metric cards with prior-period deltas
- Revenue / orders trend chart from time buckets
- Order status donut
- Revenue by dimension bar chart

Figure builders are plain functions returning Plotly figures; render_*
functions put them on the page.
"""

import logging
from typing import List, Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from .aggregator import DimensionGroup, TimeBucket
from .common import format_currency, format_number, format_percentage
from .config import REPORT_CONFIG
from .orchestrator import KPIMetrics

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    'delivered': '#2ecc71',
    'processing': '#3498db',
    'pending': '#f1c40f',
    'cancelled': '#e74c3c',
}


# ==================== Figure Builders ====================

def build_trend_figure(buckets: Sequence[TimeBucket]) -> go.Figure:
    """Revenue bars with an order-count line on a second axis"""
    labels = [b.period_label for b in buckets]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=labels,
        y=[b.revenue for b in buckets],
        name='Revenue',
        marker_color='#1ABC9C',
        hovertemplate="<b>%{x}</b><br>Revenue: %{y:,.0f}<extra></extra>"
    ))
    fig.add_trace(go.Scatter(
        x=labels,
        y=[b.orders for b in buckets],
        name='Orders',
        mode='lines+markers',
        yaxis='y2',
        line=dict(color='#2C3E50'),
        hovertemplate="<b>%{x}</b><br>Orders: %{y}<extra></extra>"
    ))
    fig.update_layout(
        height=350,
        margin=dict(l=20, r=20, t=30, b=20),
        yaxis=dict(title='Revenue'),
        yaxis2=dict(title='Orders', overlaying='y', side='right', showgrid=False),
        legend=dict(orientation='h', y=1.1),
    )
    return fig


def build_status_figure(status_counts: pd.Series) -> go.Figure:
    """Donut of order counts per status"""
    labels = [str(s).title() for s in status_counts.index]
    colors = [STATUS_COLORS.get(str(s).lower(), '#95a5a6') for s in status_counts.index]

    fig = go.Figure(data=[go.Pie(
        labels=labels,
        values=list(status_counts.values),
        hole=0.6,
        marker_colors=colors,
        textinfo='value',
        hovertemplate="<b>%{label}</b><br>%{value} orders<br>%{percent}<extra></extra>"
    )])
    fig.update_layout(height=300, margin=dict(l=20, r=20, t=10, b=10))
    return fig


def build_dimension_figure(groups: Sequence[DimensionGroup], title: str) -> go.Figure:
    df = pd.DataFrame([{'key': g.key, 'revenue': g.revenue, 'share': g.share} for g in groups])
    fig = px.bar(df, x='key', y='revenue', title=title, text='share',
                 labels={'key': '', 'revenue': 'Revenue'})
    fig.update_traces(texttemplate='%{text:.1f}%', textposition='outside')
    fig.update_layout(height=350, margin=dict(l=20, r=20, t=40, b=20))
    return fig


# ==================== Renderers ====================

def _delta(change: Optional[float], unit: str = '%') -> Optional[str]:
    if change is None:
        return None
    return f"{change:+.1f}{unit}"


def render_kpi_metrics(kpis: KPIMetrics):
    """Render KPI cards with changes against the previous period"""
    currency = REPORT_CONFIG["CURRENCY"]
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            "💰 Total Revenue",
            format_currency(kpis.total_revenue, currency),
            delta=_delta(kpis.revenue_change),
            help="Sum of net amounts in the selected period"
        )

    with col2:
        st.metric(
            "📦 Total Orders",
            format_number(kpis.total_orders, 0),
            delta=_delta(kpis.orders_change),
            help=f"Avg order value: {format_currency(kpis.avg_order_value, currency)}"
        )

    with col3:
        st.metric(
            "🤝 Customers",
            format_number(kpis.new_customers, 0),
            delta=_delta(kpis.customers_change),
            help="Distinct dealers with orders in the period"
        )

    with col4:
        st.metric(
            "✅ Conversion Rate",
            format_percentage(kpis.conversion_rate),
            delta=_delta(kpis.conversion_change, ' pts'),
            help=f"{kpis.delivered_orders} delivered orders"
        )


def render_trend_chart(buckets: List[TimeBucket]):
    st.subheader("📈 Sales Trend")
    if not buckets:
        st.info("ℹ️ No data for the selected range.")
        return
    st.plotly_chart(build_trend_figure(buckets), use_container_width=True)


def render_status_chart(records: Sequence[dict]):
    st.subheader("📊 Order Status")
    if not records:
        st.info("ℹ️ No orders in the selected range.")
        return
    counts = pd.Series([str(r.get('status') or 'unknown').lower() for r in records]).value_counts()
    st.plotly_chart(build_status_figure(counts), use_container_width=True)


def render_dimension_chart(groups: List[DimensionGroup], title: str):
    if not groups:
        st.info("ℹ️ Nothing to group.")
        return
    st.plotly_chart(build_dimension_figure(groups, title), use_container_width=True)
