# sales_reports/aggregator.py
"""
Aggregation for Sales Reports
KPI scalars, time-bucketed chart series, period comparison and group summaries

Everything is recomputed from the given records on every call; nothing is
cached between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .common import (
    ReportConstants, calculate_change, calculate_percentage, is_missing,
    parse_iso_date, stringify_value, to_number
)
from .config import REPORT_CONFIG
from .filters import text_predicate
from .models import DateRange

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

# Period frequencies per grouping unit; weeks run Monday-Sunday
PERIOD_FREQUENCIES = {
    ReportConstants.GROUP_DAILY: 'D',
    ReportConstants.GROUP_WEEKLY: 'W-SUN',
    ReportConstants.GROUP_MONTHLY: 'M',
    ReportConstants.GROUP_QUARTERLY: 'Q',
}


# ==================== Result Types ====================

@dataclass(frozen=True)
class Aggregate:
    """KPI scalars over a record collection"""
    total_revenue: float = 0.0
    record_count: int = 0
    distinct_entity_count: int = 0
    rate_metric: float = 0.0
    rate_count: int = 0
    average_value: float = 0.0


@dataclass(frozen=True)
class PeriodComparison:
    """
    Change of the current period against the previous one

    Revenue, orders and customers are percentage changes (None without a
    baseline); the rate change is in percentage points.
    """
    revenue_change: Optional[float] = None
    orders_change: Optional[float] = None
    customers_change: Optional[float] = None
    rate_change: Optional[float] = None


@dataclass(frozen=True)
class TimeBucket:
    """One chart point: a calendar period with summed metrics"""
    period_label: str
    start: date
    end: date
    revenue: float = 0.0
    orders: int = 0
    customers: int = 0
    conversion_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period_label,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'revenue': self.revenue,
            'orders': self.orders,
            'customers': self.customers,
            'conversion_rate': self.conversion_rate,
        }


@dataclass(frozen=True)
class DimensionGroup:
    """Revenue and order count for one value of a grouping field"""
    key: str
    revenue: float
    orders: int
    share: float


# ==================== Aggregator ====================

class Aggregator:
    """Reduces filtered records to KPIs and chart series"""

    def __init__(self,
                 amount_field: str = 'net_amount',
                 entity_field: str = 'dealer_id',
                 status_field: str = 'status',
                 date_field: str = 'order_date',
                 rate_statuses: Optional[Sequence[str]] = None):
        self.amount_field = amount_field
        self.entity_field = entity_field
        self.status_field = status_field
        self.date_field = date_field
        statuses = rate_statuses if rate_statuses is not None else REPORT_CONFIG["RATE_STATUSES"]
        self.rate_statuses = {s.lower() for s in statuses}

    def _is_rate_hit(self, record: Record) -> bool:
        return stringify_value(record.get(self.status_field)).lower() in self.rate_statuses

    def _entity(self, record: Record) -> Optional[str]:
        value = record.get(self.entity_field)
        if is_missing(value) or value == '':
            return None
        return stringify_value(value)

    # ==================== KPIs ====================

    def aggregate(self, records: Iterable[Record]) -> Aggregate:
        """Compute KPI scalars; an empty collection gives all zeros"""
        total = 0.0
        count = 0
        hits = 0
        entities = set()

        for record in records:
            total += to_number(record.get(self.amount_field))
            count += 1
            if self._is_rate_hit(record):
                hits += 1
            entity = self._entity(record)
            if entity is not None:
                entities.add(entity)

        return Aggregate(
            total_revenue=total,
            record_count=count,
            distinct_entity_count=len(entities),
            rate_metric=calculate_percentage(hits, count),
            rate_count=hits,
            average_value=total / count if count else 0.0,
        )

    def aggregate_range(self, records: Iterable[Record], date_range: DateRange) -> Aggregate:
        """Aggregate only records dated inside the given range"""
        return self.aggregate(
            r for r in records if date_range.contains(parse_iso_date(r.get(self.date_field)))
        )

    @staticmethod
    def compare(current: Aggregate, previous: Aggregate) -> PeriodComparison:
        """Compare two aggregates over adjacent periods"""
        rate_change = None
        if previous.record_count:
            rate_change = round(current.rate_metric - previous.rate_metric, 2)

        return PeriodComparison(
            revenue_change=calculate_change(current.total_revenue, previous.total_revenue),
            orders_change=calculate_change(current.record_count, previous.record_count),
            customers_change=calculate_change(current.distinct_entity_count,
                                              previous.distinct_entity_count),
            rate_change=rate_change,
        )

    # ==================== Time Buckets ====================

    @staticmethod
    def _period_label(period: pd.Period, group_by: str) -> str:
        start = period.start_time.date()
        if group_by == ReportConstants.GROUP_DAILY:
            return f"{start:%b} {start.day}"
        if group_by == ReportConstants.GROUP_WEEKLY:
            return f"Week of {start:%b} {start.day}"
        if group_by == ReportConstants.GROUP_MONTHLY:
            return f"{start:%b %Y}"
        return f"Q{period.quarter} {period.year}"

    def bucketize(self, records: Iterable[Record], group_by: str,
                  date_range: DateRange) -> List[TimeBucket]:
        """
        Group records into calendar buckets spanning the whole range

        Every period unit touched by the range gets a bucket, in ascending
        order, including periods without records. Edge buckets are clipped
        to the range.

        Raises:
            ValueError: unknown grouping unit
        """
        freq = PERIOD_FREQUENCIES.get(group_by)
        if freq is None:
            raise ValueError(f"Unknown grouping: {group_by}")

        if date_range.is_inverted:
            return []

        periods = pd.period_range(start=pd.Timestamp(date_range.from_date),
                                  end=pd.Timestamp(date_range.to_date),
                                  freq=freq)

        rows = []
        for record in records:
            day = parse_iso_date(record.get(self.date_field))
            if not date_range.contains(day):
                continue
            rows.append({
                'period': pd.Period(day, freq=freq),
                'amount': to_number(record.get(self.amount_field)),
                'entity': self._entity(record),
                'hit': 1 if self._is_rate_hit(record) else 0,
            })

        if rows:
            df = pd.DataFrame(rows)
            grouped = df.groupby('period').agg(
                revenue=('amount', 'sum'),
                orders=('amount', 'size'),
                customers=('entity', 'nunique'),
                hits=('hit', 'sum'),
            )
            grouped = grouped.reindex(periods, fill_value=0)
        else:
            grouped = pd.DataFrame(0, index=periods, columns=['revenue', 'orders', 'customers', 'hits'])

        buckets = []
        for period, row in grouped.iterrows():
            orders = int(row['orders'])
            buckets.append(TimeBucket(
                period_label=self._period_label(period, group_by),
                start=max(period.start_time.date(), date_range.from_date),
                end=min(period.end_time.date(), date_range.to_date),
                revenue=float(row['revenue']),
                orders=orders,
                customers=int(row['customers']),
                conversion_rate=calculate_percentage(int(row['hits']), orders),
            ))

        return buckets

    # ==================== Group Summaries ====================

    def group_by_dimension(self, records: Iterable[Record], field: str) -> List[DimensionGroup]:
        """Revenue, order count and revenue share per distinct field value"""
        rows = [
            {
                'key': stringify_value(r.get(field)) or 'Unknown',
                'amount': to_number(r.get(self.amount_field)),
            }
            for r in records
        ]
        if not rows:
            return []

        df = pd.DataFrame(rows)
        grouped = df.groupby('key', sort=False).agg(
            revenue=('amount', 'sum'),
            orders=('amount', 'size'),
        ).reset_index()
        grouped = grouped.sort_values('revenue', ascending=False, kind='stable')

        total = float(grouped['revenue'].sum())
        return [
            DimensionGroup(
                key=row['key'],
                revenue=float(row['revenue']),
                orders=int(row['orders']),
                share=calculate_percentage(row['revenue'], total),
            )
            for _, row in grouped.iterrows()
        ]

    def summarize_entities(self,
                           records: Iterable[Record],
                           entities: Iterable[Record],
                           min_total: Optional[float] = None,
                           search_text: str = '',
                           search_fields: Sequence[str] = ('name',),
                           limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Per-entity order count and total sales, highest sales first

        Args:
            records: Orders to sum (already date filtered)
            entities: Entity records (e.g. dealers) keyed by 'id'
            min_total: Keep entities with total sales >= min_total
            search_text: Case-insensitive substring match on search_fields
            limit: Keep only the first N entities after filtering

        Returns:
            Entity fields merged with 'order_count' and 'total_sales'
        """
        totals: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        for record in records:
            entity = self._entity(record)
            if entity is None:
                continue
            totals[entity] = totals.get(entity, 0.0) + to_number(record.get(self.amount_field))
            counts[entity] = counts.get(entity, 0) + 1

        summaries = []
        for entity in entities:
            key = stringify_value(entity.get('id'))
            row = dict(entity.items())
            row['order_count'] = counts.get(key, 0)
            row['total_sales'] = totals.get(key, 0.0)
            summaries.append(row)

        summaries.sort(key=lambda r: r['total_sales'], reverse=True)

        if min_total is not None:
            summaries = [s for s in summaries if s['total_sales'] >= min_total]

        matches = text_predicate(search_text, search_fields)
        summaries = [s for s in summaries if matches(s)]

        if limit is not None:
            summaries = summaries[:limit]

        return summaries
