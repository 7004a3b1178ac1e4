import unittest
from datetime import date

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from sales_reports.models import DateRange
from sales_reports.queries import ReportQueries

SCHEMA = [
    """CREATE TABLE dealers (
        id INTEGER PRIMARY KEY, name TEXT, business_name TEXT, city TEXT, state TEXT)""",
    """CREATE TABLE orders (
        id INTEGER PRIMARY KEY, order_number TEXT, dealer_id INTEGER,
        order_date TEXT, status TEXT, net_amount REAL)""",
    """CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT)""",
    """CREATE TABLE order_items (
        id INTEGER PRIMARY KEY, order_id INTEGER, product_id INTEGER,
        quantity REAL, unit_price REAL, total_price REAL)""",
]

DATA = [
    "INSERT INTO dealers VALUES (1, 'Agro Traders', 'Agro Traders Pvt Ltd', 'Pune', 'Maharashtra')",
    "INSERT INTO dealers VALUES (2, 'Farm Supply', NULL, 'Indore', 'Madhya Pradesh')",
    "INSERT INTO orders VALUES (1, 'SO-001', 1, '2025-02-28', 'delivered', 1000)",
    "INSERT INTO orders VALUES (2, 'SO-002', 2, '2025-03-15', 'pending', 2500.5)",
    "INSERT INTO orders VALUES (3, 'SO-003', NULL, '2025-03-31 17:45:00', 'delivered', 300)",
    "INSERT INTO orders VALUES (4, 'SO-004', 1, '2025-04-01', 'cancelled', 50)",
    "INSERT INTO products VALUES (10, 'Hybrid Seeds')",
    "INSERT INTO order_items VALUES (1, 2, 10, 5, 100, 500)",
    "INSERT INTO order_items VALUES (2, 2, 99, 1, 2000.5, 2000.5)",
]


def make_engine():
    return create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})


class ReportQueriesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        with self.engine.begin() as conn:
            for statement in SCHEMA + DATA:
                conn.execute(text(statement))
        self.queries = ReportQueries(engine=self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_orders_in_range_newest_first(self) -> None:
        result = self.queries.get_orders(DateRange(date(2025, 3, 1), date(2025, 3, 31)))

        self.assertTrue(result.is_success)
        self.assertEqual([o.order_number for o in result.data], ["SO-003", "SO-002"])
        self.assertEqual(result.data[0].order_date, "2025-03-31")
        self.assertIsNone(result.data[0].dealer_id)
        self.assertEqual(result.data[1].dealer_id, "2")
        self.assertEqual(result.data[1].net_amount, 2500.5)

    def test_all_orders(self) -> None:
        result = self.queries.get_orders()
        self.assertEqual(len(result.data), 4)

    def test_empty_range_is_successful(self) -> None:
        result = self.queries.get_orders(DateRange(date(2024, 1, 1), date(2024, 1, 31)))
        self.assertTrue(result.is_empty)

    def test_dealers(self) -> None:
        result = self.queries.get_dealers()
        self.assertEqual([d.name for d in result.data], ["Agro Traders", "Farm Supply"])
        self.assertEqual(result.data[0].id, "1")
        self.assertIsNone(result.data[1].business_name)

    def test_order_items_with_product_names(self) -> None:
        result = self.queries.get_order_items(2)

        self.assertTrue(result.is_success)
        self.assertEqual([i.product_name for i in result.data], ["Hybrid Seeds", None])
        self.assertEqual(result.data[0].total_price, 500.0)

    def test_order_without_items(self) -> None:
        self.assertTrue(self.queries.get_order_items(1).is_empty)

    def test_missing_tables_give_failed_result(self) -> None:
        queries = ReportQueries(engine=make_engine())
        result = queries.get_dealers()

        self.assertTrue(result.is_failed)
        self.assertTrue(result.error)
        self.assertEqual(result.data, [])


if __name__ == "__main__":
    unittest.main()
