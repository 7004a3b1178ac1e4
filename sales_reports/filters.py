# sales_reports/filters.py
"""
Record filtering for Sales Reports
Date range, free-text, status and numeric threshold predicates

Predicates are plain callables combined as an ordered list; a record passes
when every predicate passes. Filtering never mutates or reorders records.
"""

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from .common import ReportConstants, parse_iso_date, stringify_value, to_number, is_missing
from .models import DateRange, FilterState

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]
Predicate = Callable[[Record], bool]


# ==================== Predicates ====================

def date_range_predicate(date_range: DateRange, date_field: str = 'order_date') -> Predicate:
    """Pass records whose date field falls inside the inclusive range"""
    def predicate(record: Record) -> bool:
        return date_range.contains(parse_iso_date(record.get(date_field)))
    return predicate


def text_predicate(search_text: Optional[str],
                   fields: Optional[Sequence[str]] = None) -> Predicate:
    """
    Case-insensitive substring match on any field (or the given subset)

    Empty search text always passes.
    """
    needle = (search_text or '').lower()

    def predicate(record: Record) -> bool:
        if not needle:
            return True
        keys = fields if fields is not None else list(record.keys())
        return any(needle in stringify_value(record.get(key)).lower() for key in keys)
    return predicate


def status_predicate(status: Optional[str], status_field: str = 'status') -> Predicate:
    """Case-insensitive status equality; None or 'all' always passes"""
    wanted = (status or '').strip().lower()

    def predicate(record: Record) -> bool:
        if not wanted or wanted == ReportConstants.STATUS_ALL:
            return True
        return stringify_value(record.get(status_field)).lower() == wanted
    return predicate


def threshold_predicate(threshold: Optional[float], numeric_field: str = 'net_amount') -> Predicate:
    """Pass records whose numeric field is >= threshold; None always passes"""
    def predicate(record: Record) -> bool:
        if threshold is None:
            return True
        return to_number(record.get(numeric_field)) >= threshold
    return predicate


def apply_predicates(records: Iterable[Record], predicates: Sequence[Predicate]) -> List[Record]:
    """Keep records passing every predicate, in input order"""
    return [r for r in records if all(p(r) for p in predicates)]


def count_unparseable_dates(records: Iterable[Record], date_field: str = 'order_date') -> int:
    """Number of records whose date cannot be parsed"""
    return sum(1 for r in records if parse_iso_date(r.get(date_field)) is None)


# ==================== Record Filter ====================

class RecordFilter:
    """
    Applies a FilterState to a record collection

    Usage:
        record_filter = RecordFilter()
        visible = record_filter.filter(orders, filter_state)
    """

    def __init__(self,
                 date_field: str = 'order_date',
                 amount_field: str = 'net_amount',
                 status_field: str = 'status',
                 search_fields: Optional[Sequence[str]] = None):
        self.date_field = date_field
        self.amount_field = amount_field
        self.status_field = status_field
        self.search_fields = search_fields

    def predicates(self, filter_state: FilterState) -> List[Predicate]:
        """Ordered predicate list for a filter state"""
        predicates = [date_range_predicate(filter_state.date_range, self.date_field)]

        if filter_state.status_filter and filter_state.status_filter != ReportConstants.STATUS_ALL:
            predicates.append(status_predicate(filter_state.status_filter, self.status_field))

        if filter_state.search_text:
            predicates.append(text_predicate(filter_state.search_text, self.search_fields))

        if not is_missing(filter_state.numeric_threshold):
            predicates.append(threshold_predicate(filter_state.numeric_threshold, self.amount_field))

        return predicates

    def filter(self, records: Iterable[Record], filter_state: FilterState) -> List[Record]:
        """Filter records by every active predicate of the filter state"""
        records = list(records)

        if filter_state.date_range.is_inverted:
            logger.debug(f"Inverted date range {filter_state.date_range.to_iso()} - empty result")
            return []

        result = apply_predicates(records, self.predicates(filter_state))

        skipped = count_unparseable_dates(records, self.date_field)
        if skipped:
            logger.debug(f"{skipped} records skipped for unparseable {self.date_field}")

        return result
