import csv
import io
import unittest
from datetime import date

from openpyxl import load_workbook

from sales_reports.models import DateRange, Dealer, FetchResult, OrderItem, OrderRecord
from sales_reports.orchestrator import ReportOrchestrator

TODAY = date(2025, 6, 15)


def make_orders():
    rows = [
        # May 2025
        ("1", "SO-101", "1", "2025-05-03", "delivered", 1000),
        ("2", "SO-102", "2", "2025-05-10", "pending", 500),
        ("3", "SO-103", "1", "2025-05-20", "delivered", 1500),
        # June 2025
        ("4", "SO-104", "1", "2025-06-02", "delivered", 2000),
        ("5", "SO-105", "3", "2025-06-05", "cancelled", 400),
        ("6", "SO-106", "2", "2025-06-12", "delivered", 600),
        # April 2025
        ("7", "SO-107", "2", "2025-04-18", "delivered", 800),
    ]
    return [
        OrderRecord.from_mapping({"id": r[0], "order_number": r[1], "dealer_id": r[2],
                                  "order_date": r[3], "status": r[4], "net_amount": r[5]})
        for r in rows
    ]


def make_dealers():
    return [
        Dealer.from_mapping({"id": "1", "name": "Agro Traders", "state": "Maharashtra"}),
        Dealer.from_mapping({"id": "2", "name": "Farm Supply", "state": "Gujarat"}),
        Dealer.from_mapping({"id": "3", "name": "Green Fields", "state": "Maharashtra"}),
    ]


class FakeDataSource:
    def __init__(self, orders=None, dealers=None, fail_orders=False, fail_items=False):
        self.orders = orders if orders is not None else make_orders()
        self.dealers = dealers if dealers is not None else make_dealers()
        self.fail_orders = fail_orders
        self.fail_items = fail_items

    def get_orders(self, date_range=None):
        if self.fail_orders:
            return FetchResult.failed("connection lost")
        return FetchResult.success(self.orders)

    def get_dealers(self):
        return FetchResult.success(self.dealers)

    def get_order_items(self, order_id):
        if self.fail_items:
            raise ConnectionError("timeout")
        if order_id == "4":
            return FetchResult.success([OrderItem.from_mapping(
                {"id": 1, "order_id": 4, "product_name": "Seeds", "quantity": 4,
                 "unit_price": 500, "total_price": 2000})])
        return FetchResult.success([])


def make_report(**kwargs):
    report = ReportOrchestrator(data_source=FakeDataSource(**kwargs), today_provider=lambda: TODAY)
    report.load()
    return report


class FilterStateTests(unittest.TestCase):
    def test_default_is_current_month(self) -> None:
        report = make_report()
        self.assertEqual(report.filter_state.date_range, DateRange(date(2025, 6, 1), date(2025, 6, 30)))
        self.assertEqual(report.filter_state.preset, "this_month")

    def test_last_month_preset(self) -> None:
        report = make_report()
        report.apply_date_range_preset("last_month")
        self.assertEqual(report.filter_state.date_range.to_iso(), {"from": "2025-05-01", "to": "2025-05-31"})

    def test_unknown_preset_raises(self) -> None:
        report = make_report()
        with self.assertRaises(ValueError):
            report.apply_date_range_preset("yesterday")

    def test_filter_changes_reset_page(self) -> None:
        report = make_report()
        report.orders_table.go_to_page(3)
        report.orders_table.toggle_expand("4")

        report.set_search_text("SO-10")
        self.assertEqual(report.orders_table.page_index, 0)
        self.assertEqual(report.orders_table.expanded, frozenset())

        report.orders_table.go_to_page(2)
        report.set_custom_range("2025-05-01", "2025-06-30")
        self.assertEqual(report.orders_table.page_index, 0)
        self.assertEqual(report.filter_state.preset, "custom")

    def test_reset(self) -> None:
        report = make_report()
        report.apply_date_range_preset("this_year")
        report.set_status_filter("delivered")
        report.set_numeric_threshold(100)
        report.reset()

        self.assertEqual(report.filter_state.date_range, DateRange(date(2025, 6, 1), date(2025, 6, 30)))
        self.assertIsNone(report.filter_state.status_filter)
        self.assertIsNone(report.filter_state.numeric_threshold)

    def test_unknown_grouping_raises(self) -> None:
        with self.assertRaises(ValueError):
            make_report().set_group_by("hourly")


class ComputeTests(unittest.TestCase):
    def test_kpis_compare_with_previous_month(self) -> None:
        report = make_report()
        view = report.compute()
        kpis = view.kpis

        self.assertEqual(kpis.total_revenue, 3000.0)
        self.assertEqual(kpis.total_orders, 3)
        self.assertEqual(kpis.new_customers, 3)
        self.assertEqual(kpis.delivered_orders, 2)
        self.assertEqual(kpis.conversion_rate, 66.67)
        self.assertEqual(kpis.avg_order_value, 1000.0)

        # May: 3000 revenue, 3 orders, 2 dealers, 66.67% delivered
        self.assertEqual(view.previous_range, DateRange(date(2025, 5, 1), date(2025, 5, 31)))
        self.assertEqual(kpis.revenue_change, 0.0)
        self.assertEqual(kpis.orders_change, 0.0)
        self.assertEqual(kpis.customers_change, 50.0)
        self.assertEqual(kpis.conversion_change, 0.0)

    def test_chart_series_spans_range(self) -> None:
        report = make_report()
        report.apply_date_range_preset("last_3_months")
        view = report.compute()

        self.assertEqual([b.period_label for b in view.chart_series], ["Apr 2025", "May 2025", "Jun 2025"])
        self.assertEqual([b.orders for b in view.chart_series], [1, 3, 3])

    def test_table_rows_carry_dealer_names(self) -> None:
        view = make_report().compute()
        self.assertEqual(view.table.total_filtered, 3)
        self.assertEqual({r["dealer_name"] for r in view.table.rows},
                         {"Agro Traders", "Green Fields", "Farm Supply"})

    def test_search_matches_dealer_names(self) -> None:
        report = make_report()
        report.set_search_text("green")
        view = report.compute()

        self.assertEqual(view.table.total_filtered, 1)
        self.assertEqual(view.table.rows[0]["order_number"], "SO-105")
        self.assertEqual(view.kpis.total_orders, 1)

    def test_inverted_range_gives_empty_report(self) -> None:
        report = make_report()
        report.set_custom_range("2025-06-30", "2025-06-01")
        view = report.compute()

        self.assertEqual(view.kpis.total_orders, 0)
        self.assertEqual(view.chart_series, [])
        self.assertEqual(view.table.rows, [])

    def test_failed_load_keeps_stale_orders(self) -> None:
        report = make_report()
        report.data_source.fail_orders = True
        report.load()

        self.assertTrue(report.orders_result.is_failed)
        self.assertEqual(len(report.orders), 7)
        self.assertEqual(report.compute().warnings, ["Orders could not be loaded: connection lost"])


class DrillDownTests(unittest.TestCase):
    def test_orders_for_dealer_most_recent_first(self) -> None:
        report = make_report()
        report.apply_date_range_preset("last_3_months")
        result = report.orders_for_dealer("1")

        self.assertTrue(result.is_success)
        self.assertEqual([o.order_number for o in result.data], ["SO-104", "SO-103", "SO-101"])

    def test_orders_for_dealer_after_failed_load(self) -> None:
        report = make_report(fail_orders=True)
        result = report.orders_for_dealer("1")
        self.assertTrue(result.is_failed)
        self.assertEqual(result.error, "connection lost")

    def test_items_for_order(self) -> None:
        report = make_report()
        items = report.items_for_order("4")
        self.assertEqual([i.product_name for i in items.data], ["Seeds"])

        empty = report.items_for_order("5")
        self.assertTrue(empty.is_success)
        self.assertTrue(empty.is_empty)

    def test_items_for_order_error_is_failed_state(self) -> None:
        report = make_report(fail_items=True)
        result = report.items_for_order("4")
        self.assertTrue(result.is_failed)
        self.assertEqual(result.error, "timeout")


class SummaryTests(unittest.TestCase):
    def test_dealer_sales(self) -> None:
        report = make_report()
        rows = report.dealer_sales()

        self.assertEqual([r["name"] for r in rows], ["Agro Traders", "Farm Supply", "Green Fields"])
        self.assertEqual(rows[0]["total_sales"], 2000.0)

        rows = report.dealer_sales(min_total=500)
        self.assertEqual([r["name"] for r in rows], ["Agro Traders", "Farm Supply"])

    def test_recent_orders(self) -> None:
        report = make_report()
        report.apply_date_range_preset("last_3_months")

        rows = report.recent_orders(limit=2)
        self.assertEqual([r["order_number"] for r in rows], ["SO-106", "SO-105"])

        rows = report.recent_orders(status="pending")
        self.assertEqual([r["order_number"] for r in rows], ["SO-102"])

        rows = report.recent_orders(search_text="farm")
        self.assertEqual([r["order_number"] for r in rows], ["SO-106", "SO-102", "SO-107"])

    def test_revenue_by_region(self) -> None:
        report = make_report()
        groups = report.revenue_by("region")

        self.assertEqual([g.key for g in groups], ["Maharashtra", "Gujarat"])
        self.assertEqual(groups[0].revenue, 2400.0)
        with self.assertRaises(ValueError):
            report.revenue_by("planet")


class ExportTests(unittest.TestCase):
    def test_export_current_view(self) -> None:
        report = make_report()
        calls = []
        result = report.export("csv",
                               on_export_start=lambda: calls.append("start"),
                               on_export_complete=lambda: calls.append("complete"))

        rows = list(csv.reader(io.StringIO(result.data.decode("utf-8"))))
        self.assertEqual(rows[0], ["Order Number", "Dealer", "Date", "Status", "Amount"])
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[1][:4], ["SO-104", "Agro Traders", "2025-06-02", "Delivered"])
        self.assertEqual(calls, ["start", "complete"])

    def test_export_empty_view(self) -> None:
        report = make_report()
        report.set_search_text("no such order")
        result = report.export("csv")

        rows = list(csv.reader(io.StringIO(result.data.decode("utf-8"))))
        self.assertEqual(len(rows), 1)

    def test_full_workbook(self) -> None:
        result = make_report().export_workbook()
        workbook = load_workbook(io.BytesIO(result.data))

        self.assertEqual(result.filename, "sales_report_full.xlsx")
        self.assertEqual(workbook.sheetnames, ["Orders", "Dealers", "Trend"])
        self.assertEqual(workbook["Orders"].max_row, 4)


if __name__ == "__main__":
    unittest.main()
