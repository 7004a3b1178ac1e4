# sales_reports/common.py
"""
Common utilities for the Sales Reports module
Constants, date parsing and presets, number formatting, safe math

Version: 1.0.0
"""

import logging
import math
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd

from .config import APP_CONFIG

logger = logging.getLogger(__name__)


# ==================== Constants ====================

class ReportConstants:
    """Report-specific constants"""
    ISO_DATE_FORMAT = '%Y-%m-%d'
    PERCENTAGE_DECIMALS = 1

    # Date presets
    PRESET_THIS_MONTH = 'this_month'
    PRESET_LAST_MONTH = 'last_month'
    PRESET_LAST_3_MONTHS = 'last_3_months'
    PRESET_LAST_6_MONTHS = 'last_6_months'
    PRESET_THIS_YEAR = 'this_year'
    PRESET_CUSTOM = 'custom'

    DATE_PRESETS = [
        PRESET_THIS_MONTH,
        PRESET_LAST_MONTH,
        PRESET_LAST_3_MONTHS,
        PRESET_LAST_6_MONTHS,
        PRESET_THIS_YEAR,
    ]

    # Time grouping
    GROUP_DAILY = 'daily'
    GROUP_WEEKLY = 'weekly'
    GROUP_MONTHLY = 'monthly'
    GROUP_QUARTERLY = 'quarterly'
    TIME_GROUPS = [GROUP_DAILY, GROUP_WEEKLY, GROUP_MONTHLY, GROUP_QUARTERLY]

    # Order statuses
    STATUS_ALL = 'all'
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    ORDER_STATUSES = [STATUS_PENDING, STATUS_PROCESSING, STATUS_DELIVERED, STATUS_CANCELLED]


PRESET_LABELS = {
    ReportConstants.PRESET_THIS_MONTH: "📅 This Month",
    ReportConstants.PRESET_LAST_MONTH: "📅 Last Month",
    ReportConstants.PRESET_LAST_3_MONTHS: "📆 Last 3 Months",
    ReportConstants.PRESET_LAST_6_MONTHS: "📆 Last 6 Months",
    ReportConstants.PRESET_THIS_YEAR: "🗓️ This Year",
    ReportConstants.PRESET_CUSTOM: "🔧 Custom Range",
}


# ==================== Timezone Helpers ====================

def _get_timezone() -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(APP_CONFIG.get("TIMEZONE", "UTC"))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Timezone {APP_CONFIG.get('TIMEZONE')} not available. Using system timezone.")
        return None


def get_local_now() -> datetime:
    """Get current datetime in the configured report timezone"""
    tz = _get_timezone()
    if tz:
        return datetime.now(tz)
    return datetime.now()


def get_local_today() -> date:
    """Get current date in the configured report timezone"""
    return get_local_now().date()


# ==================== Date Parsing ====================

def is_missing(value: Any) -> bool:
    """True for None and NaN-like values (NaN, NaT, pd.NA)"""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-like values
        return False


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a record date to a calendar date

    Accepts date/datetime objects and ISO strings ('YYYY-MM-DD', optionally
    followed by a time part). Returns None when the value cannot be parsed.
    """
    if is_missing(value):
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    text = value.strip()
    if len(text) < 10 or (len(text) > 10 and text[10] not in 'T '):
        return None

    try:
        return datetime.strptime(text[:10], ReportConstants.ISO_DATE_FORMAT).date()
    except ValueError:
        return None


def format_iso_date(value: Any) -> str:
    """Format date as ISO 'YYYY-MM-DD', empty string when unparseable"""
    parsed = parse_iso_date(value)
    if parsed is None:
        return ''
    return parsed.strftime(ReportConstants.ISO_DATE_FORMAT)


# ==================== Month Helpers ====================

def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1) - timedelta(days=1)
    return date(d.year, d.month + 1, 1) - timedelta(days=1)


def add_months(d: date, months: int) -> date:
    """Shift to the first day of the month `months` away from d's month"""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


# ==================== Date Presets ====================

def get_date_preset_range(preset: str, today: date) -> Tuple[date, date]:
    """
    Compute (from_date, to_date) for a named preset anchored at `today`

    Raises:
        ValueError: unknown preset name
    """
    if preset == ReportConstants.PRESET_THIS_MONTH:
        return month_start(today), month_end(today)

    if preset == ReportConstants.PRESET_LAST_MONTH:
        start = add_months(today, -1)
        return start, month_end(start)

    if preset == ReportConstants.PRESET_LAST_3_MONTHS:
        return add_months(today, -2), month_end(today)

    if preset == ReportConstants.PRESET_LAST_6_MONTHS:
        return add_months(today, -5), month_end(today)

    if preset == ReportConstants.PRESET_THIS_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    raise ValueError(f"Unknown date range preset: {preset}")


def get_date_presets(today: Optional[date] = None) -> Dict[str, Tuple[date, date]]:
    """Get all date range presets"""
    today = today or get_local_today()
    return {name: get_date_preset_range(name, today) for name in ReportConstants.DATE_PRESETS}


def get_preset_label(preset: str) -> str:
    """Get display label for date preset"""
    return PRESET_LABELS.get(preset, preset)


# ==================== Value Conversion ====================

def to_number(value: Any) -> float:
    """Convert amount-like value to float, 0.0 when missing or invalid"""
    if is_missing(value) or isinstance(value, bool):
        return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def is_numeric(value: Any) -> bool:
    """True for real numbers (bool excluded), NaN excluded"""
    if isinstance(value, bool) or is_missing(value):
        return False
    return isinstance(value, (int, float, Decimal))


def stringify_value(value: Any) -> str:
    """
    String form of a record value for search and export

    Missing values become '', dates become ISO strings and integral floats
    drop their trailing '.0'.
    """
    if is_missing(value):
        return ''

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.strftime(ReportConstants.ISO_DATE_FORMAT)
        return value.isoformat(sep=' ')

    if isinstance(value, date):
        return value.strftime(ReportConstants.ISO_DATE_FORMAT)

    if isinstance(value, float) and value.is_integer():
        return str(int(value))

    return str(value)


# ==================== Number Formatting ====================

def format_number(value: Union[int, float, Decimal, None],
                  decimal_places: int = 2,
                  use_thousands_separator: bool = True) -> str:
    """Format number with precision and separators"""
    if is_missing(value):
        return "0"

    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))

        quantize_str = '0.' + '0' * decimal_places if decimal_places > 0 else '0'
        value = value.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

        if use_thousands_separator:
            return f"{value:,}"
        return str(value)

    except Exception as e:
        logger.error(f"Error formatting number {value}: {e}")
        return str(value)


def format_currency(value: Union[int, float, Decimal, None],
                    currency: str = "INR") -> str:
    """Format currency value"""
    if is_missing(value):
        value = 0

    formatted = format_number(value, 0 if currency == "INR" else 2)

    if currency == "INR":
        return f"₹{formatted}"
    elif currency == "USD":
        return f"${formatted}"
    return f"{formatted} {currency}"


def format_percentage(value: Union[int, float, None], decimal_places: int = 1) -> str:
    """Format percentage value"""
    if is_missing(value):
        return "0%"
    return f"{round(float(value), decimal_places)}%"


def calculate_percentage(numerator: Union[int, float],
                         denominator: Union[int, float],
                         decimal_places: int = 2) -> float:
    """Calculate percentage safely, 0.0 when the denominator is 0"""
    if is_missing(numerator) or is_missing(denominator) or denominator == 0:
        return 0.0

    return round((float(numerator) / float(denominator)) * 100, decimal_places)


def calculate_change(current: Union[int, float],
                     previous: Union[int, float],
                     decimal_places: int = 1) -> Optional[float]:
    """
    Percentage change from previous to current

    Returns None when there is no baseline (previous is 0 or missing).
    """
    if is_missing(previous) or is_missing(current) or previous == 0:
        return None

    return round((float(current) - float(previous)) / abs(float(previous)) * 100, decimal_places)
