# sales_reports/config.py
"""
Configuration for the Sales Reports module
Database, application and report defaults, read from environment variables

Version: 1.0.0
"""

import os


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


# ==================== Database ====================

DB_CONFIG = {
    "host": os.getenv("REPORTS_DB_HOST", "localhost"),
    "port": _env_int("REPORTS_DB_PORT", 3306),
    "user": os.getenv("REPORTS_DB_USER", "reports"),
    "password": os.getenv("REPORTS_DB_PASSWORD", ""),
    "database": os.getenv("REPORTS_DB_NAME", "sales"),
    # Full SQLAlchemy URL, takes precedence over the fields above when set
    "url": os.getenv("REPORTS_DB_URL", ""),
}


# ==================== Application ====================

APP_CONFIG = {
    "DB_POOL_SIZE": _env_int("REPORTS_DB_POOL_SIZE", 5),
    "DB_POOL_RECYCLE": _env_int("REPORTS_DB_POOL_RECYCLE", 3600),
    "TIMEZONE": os.getenv("REPORTS_TIMEZONE", "Asia/Kolkata"),
    "LOG_LEVEL": os.getenv("REPORTS_LOG_LEVEL", "INFO"),
}


# ==================== Report Defaults ====================

REPORT_CONFIG = {
    "TABLE_PAGE_SIZE": _env_int("REPORTS_TABLE_PAGE_SIZE", 10),
    "DRILLDOWN_PAGE_SIZE": _env_int("REPORTS_DRILLDOWN_PAGE_SIZE", 5),
    "RECENT_ORDERS_LIMIT": _env_int("REPORTS_RECENT_ORDERS_LIMIT", 10),
    "RATE_STATUSES": tuple(
        s.strip().lower()
        for s in os.getenv("REPORTS_RATE_STATUSES", "delivered").split(",")
        if s.strip()
    ),
    "CURRENCY": os.getenv("REPORTS_CURRENCY", "INR"),
    "EXPORT_FILENAME": os.getenv("REPORTS_EXPORT_FILENAME", "sales_report"),
}
