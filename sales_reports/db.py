# sales_reports/db.py
"""
Database connection management with singleton pattern

Version: 1.1.0
Changes:
- Engine URL can be given in full through DB_CONFIG["url"]
- Connection pool configuration from APP_CONFIG
- Connection health check
- Auto-reconnect with pool_pre_ping
"""

import logging
import threading
from typing import Tuple, Optional
from urllib.parse import quote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import QueuePool

from .config import DB_CONFIG, APP_CONFIG

logger = logging.getLogger(__name__)

# Singleton engine instance
_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def build_db_url(db_config: dict) -> str:
    """Build SQLAlchemy URL from DB config"""
    if db_config.get("url"):
        return db_config["url"]

    user = db_config["user"]
    password = quote_plus(str(db_config["password"]))
    host = db_config["host"]
    port = db_config["port"]
    database = db_config["database"]
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


def _mask_url(url: str) -> str:
    """Hide password in URL for logging"""
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, location = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{location}"


def get_db_engine() -> Engine:
    """
    Create and return SQLAlchemy database engine (singleton pattern)

    Returns the same engine instance across all calls to avoid
    creating multiple connections and exhausting the connection pool.
    """
    global _engine

    # Double-checked locking
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                logger.info("🔌 Creating database engine (singleton)...")

                url = build_db_url(DB_CONFIG)
                logger.info(f"🔐 SQLAlchemy URL: {_mask_url(url)}")

                pool_size = APP_CONFIG.get("DB_POOL_SIZE", 5)
                pool_recycle = APP_CONFIG.get("DB_POOL_RECYCLE", 3600)

                if url.startswith("sqlite"):
                    # SQLite has no server-side pool to size
                    _engine = create_engine(url, pool_pre_ping=True)
                else:
                    _engine = create_engine(
                        url,
                        poolclass=QueuePool,
                        pool_size=pool_size,
                        max_overflow=10,
                        pool_timeout=30,
                        pool_recycle=pool_recycle,
                        pool_pre_ping=True,
                        echo=False
                    )

                logger.info(f"✅ Database engine created (pool_size={pool_size}, recycle={pool_recycle}s)")

    return _engine


def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected, error_message or None)
    """
    try:
        engine = get_db_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except OperationalError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False, "Cannot connect to database. Please check your network/VPN connection."
    except Exception as e:
        logger.error(f"❌ Database error: {e}")
        return False, f"Database error: {str(e)}"


def reset_db_engine():
    """Dispose the engine so the next call reconnects"""
    global _engine

    with _engine_lock:
        if _engine is not None:
            try:
                _engine.dispose()
                logger.info("🔄 Database engine disposed")
            except Exception as e:
                logger.error(f"Error disposing engine: {e}")
            _engine = None

    logger.info("🔄 Database engine reset - will reconnect on next query")
