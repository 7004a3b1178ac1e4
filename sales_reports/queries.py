# sales_reports/queries.py
"""
SQL Queries for Sales Reports

Provides data extraction for:
- Orders in a date range
- Dealers (customers)
- Line items of one order, with product names

Every query returns a FetchResult: a database error becomes a failed result
(logged), an empty table is a successful empty result.
"""

import logging
from typing import Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from .models import DateRange, Dealer, FetchResult, OrderItem, OrderRecord

logger = logging.getLogger(__name__)


class ReportQueries:
    """
    SQL query provider for the sales report

    Tables: orders, dealers, order_items, products
    """

    def __init__(self, engine: Optional[Engine] = None):
        if engine is None:
            from .db import get_db_engine
            engine = get_db_engine()
        self.engine = engine

    # ==================== Orders ====================

    def get_orders(self, date_range: Optional[DateRange] = None) -> FetchResult:
        """
        Get orders, optionally limited to a date range

        Args:
            date_range: Inclusive order_date range (None for all orders)

        Returns:
            FetchResult of OrderRecord, newest first
        """
        query = """
            SELECT
                o.id,
                o.order_number,
                o.dealer_id,
                o.order_date,
                o.status,
                o.net_amount
            FROM orders o
            WHERE 1=1
        """

        params = {}

        if date_range is not None:
            query += " AND DATE(o.order_date) BETWEEN :date_from AND :date_to"
            iso = date_range.to_iso()
            params['date_from'] = iso['from']
            params['date_to'] = iso['to']

        query += " ORDER BY o.order_date DESC, o.id DESC"

        try:
            df = pd.read_sql(text(query), self.engine, params=params)
            orders = [OrderRecord.from_mapping(row) for row in df.to_dict('records')]
            logger.debug(f"Loaded {len(orders)} orders")
            return FetchResult.success(orders)
        except Exception as e:
            logger.error(f"Error getting orders: {e}")
            return FetchResult.failed(str(e))

    # ==================== Dealers ====================

    def get_dealers(self) -> FetchResult:
        """Get all dealers ordered by name"""
        query = """
            SELECT
                d.id,
                d.name,
                d.business_name,
                d.city,
                d.state
            FROM dealers d
            ORDER BY d.name
        """

        try:
            df = pd.read_sql(text(query), self.engine)
            dealers = [Dealer.from_mapping(row) for row in df.to_dict('records')]
            logger.debug(f"Loaded {len(dealers)} dealers")
            return FetchResult.success(dealers)
        except Exception as e:
            logger.error(f"Error getting dealers: {e}")
            return FetchResult.failed(str(e))

    # ==================== Order Items ====================

    def get_order_items(self, order_id) -> FetchResult:
        """
        Get line items of one order

        Product names come from the products table; items whose product is
        missing keep an empty name.
        """
        query = """
            SELECT
                oi.id,
                oi.order_id,
                oi.product_id,
                p.name as product_name,
                oi.quantity,
                oi.unit_price,
                oi.total_price
            FROM order_items oi
            LEFT JOIN products p ON p.id = oi.product_id
            WHERE oi.order_id = :order_id
            ORDER BY oi.id
        """

        try:
            df = pd.read_sql(text(query), self.engine, params={'order_id': order_id})
            items = [OrderItem.from_mapping(row) for row in df.to_dict('records')]
            return FetchResult.success(items)
        except Exception as e:
            logger.error(f"Error getting items for order {order_id}: {e}")
            return FetchResult.failed(str(e))
