# sales_reports/models.py
"""
Data model for the Sales Reports engine

Records are immutable: a fixed set of typed fields plus an open `extra`
mapping for report-specific columns. Every record is also a read-only
Mapping (field name -> value) so filtering, projection and export work the
same way on records and on plain dicts.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

from .common import (
    ReportConstants, add_months, format_iso_date, is_missing, month_end,
    parse_iso_date, stringify_value, to_number
)


# ==================== Records ====================

class RecordMixin(Mapping):
    """Mapping view over a record dataclass with an `extra` field"""

    def _field_names(self) -> List[str]:
        return [f.name for f in fields(self) if f.name != 'extra']

    def __getitem__(self, key: str) -> Any:
        if key != 'extra' and key in self._field_names():
            return getattr(self, key)
        return self.extra[key]

    def __iter__(self) -> Iterator[str]:
        names = self._field_names()
        yield from names
        for key in self.extra:
            if key not in names:
                yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.items())


def _text(value: Any, default: str = '') -> str:
    if is_missing(value):
        return default
    # Nullable integer columns come back from pandas as floats (7.0 -> '7')
    return stringify_value(value)


def _optional_text(value: Any) -> Optional[str]:
    if is_missing(value):
        return None
    return stringify_value(value)


def _split_extra(row: Mapping, known: List[str]) -> Dict[str, Any]:
    return {k: v for k, v in row.items() if k not in known}


@dataclass(frozen=True, eq=True)
class OrderRecord(RecordMixin):
    """One sales order"""
    id: str
    order_number: str = ''
    dealer_id: Optional[str] = None
    order_date: Optional[str] = None
    status: str = ''
    net_amount: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, row: Mapping) -> 'OrderRecord':
        known = ['id', 'order_number', 'dealer_id', 'order_date', 'status', 'net_amount']
        order_date = row.get('order_date')
        # Keep unparseable strings as-is so the filter can skip them
        iso = format_iso_date(order_date) or _optional_text(order_date)
        return cls(
            id=_text(row.get('id')),
            order_number=_text(row.get('order_number')),
            dealer_id=_optional_text(row.get('dealer_id')),
            order_date=iso,
            status=_text(row.get('status')),
            net_amount=to_number(row.get('net_amount')),
            extra=_split_extra(row, known),
        )

    @property
    def order_day(self) -> Optional[date]:
        return parse_iso_date(self.order_date)


@dataclass(frozen=True, eq=True)
class Dealer(RecordMixin):
    """Dealer / customer entity"""
    id: str
    name: str = ''
    business_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, row: Mapping) -> 'Dealer':
        known = ['id', 'name', 'business_name', 'city', 'state']
        return cls(
            id=_text(row.get('id')),
            name=_text(row.get('name')),
            business_name=_optional_text(row.get('business_name')),
            city=_optional_text(row.get('city')),
            state=_optional_text(row.get('state')),
            extra=_split_extra(row, known),
        )


@dataclass(frozen=True, eq=True)
class OrderItem(RecordMixin):
    """Line item of an order"""
    id: str
    order_id: str
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    quantity: float = 0.0
    unit_price: float = 0.0
    total_price: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, row: Mapping) -> 'OrderItem':
        known = ['id', 'order_id', 'product_id', 'product_name',
                 'quantity', 'unit_price', 'total_price']
        return cls(
            id=_text(row.get('id')),
            order_id=_text(row.get('order_id')),
            product_id=_optional_text(row.get('product_id')),
            product_name=_optional_text(row.get('product_name')),
            quantity=to_number(row.get('quantity')),
            unit_price=to_number(row.get('unit_price')),
            total_price=to_number(row.get('total_price')),
            extra=_split_extra(row, known),
        )


# ==================== Date Range ====================

@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range; from_date > to_date means empty"""
    from_date: date
    to_date: date

    @classmethod
    def from_iso(cls, from_value: str, to_value: str) -> 'DateRange':
        from_date = parse_iso_date(from_value)
        to_date = parse_iso_date(to_value)
        if from_date is None or to_date is None:
            raise ValueError(f"Invalid ISO date range: {from_value!r} - {to_value!r}")
        return cls(from_date, to_date)

    @property
    def is_inverted(self) -> bool:
        return self.from_date > self.to_date

    @property
    def days(self) -> int:
        """Number of calendar days covered (0 when inverted)"""
        if self.is_inverted:
            return 0
        return (self.to_date - self.from_date).days + 1

    def contains(self, value: Optional[date]) -> bool:
        if value is None or self.is_inverted:
            return False
        return self.from_date <= value <= self.to_date

    def is_whole_months(self) -> bool:
        return (not self.is_inverted
                and self.from_date.day == 1
                and self.to_date == month_end(self.to_date))

    def previous_period(self) -> 'DateRange':
        """
        Adjacent period of equal length ending the day before from_date

        Whole-month ranges step back by the same number of calendar months,
        other ranges by the same number of days.
        """
        if self.is_whole_months():
            months = ((self.to_date.year - self.from_date.year) * 12
                      + self.to_date.month - self.from_date.month + 1)
            start = add_months(self.from_date, -months)
            return DateRange(start, self.from_date - timedelta(days=1))

        length = max(self.days, 1)
        end = self.from_date - timedelta(days=1)
        return DateRange(end - timedelta(days=length - 1), end)

    def to_iso(self) -> Dict[str, str]:
        return {
            'from': self.from_date.strftime(ReportConstants.ISO_DATE_FORMAT),
            'to': self.to_date.strftime(ReportConstants.ISO_DATE_FORMAT),
        }


# ==================== Filter State ====================

@dataclass(frozen=True)
class FilterState:
    """User-selected filter parameters, all predicates AND-ed"""
    date_range: DateRange
    search_text: str = ''
    status_filter: Optional[str] = None
    numeric_threshold: Optional[float] = None
    preset: str = ReportConstants.PRESET_THIS_MONTH
    group_by: str = ReportConstants.GROUP_MONTHLY

    def with_changes(self, **changes) -> 'FilterState':
        return replace(self, **changes)


# ==================== Fetch Result ====================

class FetchStatus(Enum):
    """Outcome of an external data fetch"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


T = TypeVar('T')


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Explicit fetch outcome: failure is distinct from an empty success"""
    status: FetchStatus
    data: List[T] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def success(cls, data: List[T]) -> 'FetchResult[T]':
        return cls(FetchStatus.SUCCESS, list(data))

    @classmethod
    def failed(cls, error: str) -> 'FetchResult[T]':
        return cls(FetchStatus.FAILED, [], error)

    @classmethod
    def pending(cls) -> 'FetchResult[T]':
        return cls(FetchStatus.PENDING)

    @property
    def is_success(self) -> bool:
        return self.status == FetchStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == FetchStatus.FAILED

    @property
    def is_pending(self) -> bool:
        return self.status == FetchStatus.PENDING

    @property
    def is_empty(self) -> bool:
        """Successful fetch with no rows"""
        return self.is_success and not self.data
