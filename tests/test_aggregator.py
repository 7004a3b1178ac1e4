import math
import unittest
from datetime import date

from sales_reports.aggregator import Aggregate, Aggregator
from sales_reports.models import DateRange, Dealer, OrderRecord


def order(id, order_date, amount, dealer_id="1", status="delivered"):
    return OrderRecord.from_mapping({
        "id": id, "order_number": f"SO-{id}", "dealer_id": dealer_id,
        "order_date": order_date, "status": status, "net_amount": amount,
    })


class AggregateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.aggregator = Aggregator()

    def test_empty_collection_is_all_zero(self) -> None:
        result = self.aggregator.aggregate([])
        self.assertEqual(result, Aggregate())
        self.assertFalse(math.isnan(result.rate_metric))

    def test_kpis(self) -> None:
        orders = [
            order(1, "2025-03-01", 1000, "1", "delivered"),
            order(2, "2025-03-02", 500, "2", "pending"),
            order(3, "2025-03-03", 1500, "1", "Delivered"),
            order(4, "2025-03-04", None, "3", "cancelled"),
        ]
        result = self.aggregator.aggregate(orders)

        self.assertEqual(result.total_revenue, 3000.0)
        self.assertEqual(result.record_count, 4)
        self.assertEqual(result.distinct_entity_count, 3)
        self.assertEqual(result.rate_count, 2)
        self.assertEqual(result.rate_metric, 50.0)
        self.assertEqual(result.average_value, 750.0)

    def test_aggregate_range(self) -> None:
        orders = [order(1, "2025-02-10", 100), order(2, "2025-03-10", 300)]
        result = self.aggregator.aggregate_range(orders, DateRange(date(2025, 3, 1), date(2025, 3, 31)))
        self.assertEqual(result.total_revenue, 300.0)
        self.assertEqual(result.record_count, 1)

    def test_compare_with_previous_period(self) -> None:
        current = Aggregate(total_revenue=1500, record_count=3, distinct_entity_count=2,
                            rate_metric=66.67, rate_count=2)
        previous = Aggregate(total_revenue=1000, record_count=4, distinct_entity_count=2,
                             rate_metric=50.0, rate_count=2)
        comparison = Aggregator.compare(current, previous)

        self.assertEqual(comparison.revenue_change, 50.0)
        self.assertEqual(comparison.orders_change, -25.0)
        self.assertEqual(comparison.customers_change, 0.0)
        self.assertEqual(comparison.rate_change, 16.67)

    def test_compare_without_baseline(self) -> None:
        comparison = Aggregator.compare(Aggregate(total_revenue=10, record_count=1), Aggregate())
        self.assertIsNone(comparison.revenue_change)
        self.assertIsNone(comparison.orders_change)
        self.assertIsNone(comparison.rate_change)


class BucketizeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.aggregator = Aggregator()

    def test_monthly_buckets_cover_range_without_gaps(self) -> None:
        orders = [order(1, "2025-01-15", 100), order(2, "2025-03-02", 250), order(3, "2025-03-20", 50)]
        buckets = self.aggregator.bucketize(orders, "monthly", DateRange(date(2025, 1, 1), date(2025, 3, 31)))

        self.assertEqual([b.period_label for b in buckets], ["Jan 2025", "Feb 2025", "Mar 2025"])
        self.assertEqual([b.revenue for b in buckets], [100.0, 0.0, 300.0])
        self.assertEqual([b.orders for b in buckets], [1, 0, 2])
        self.assertEqual(buckets[1].conversion_rate, 0.0)

    def test_daily_bucket_count_matches_days(self) -> None:
        date_range = DateRange(date(2025, 3, 1), date(2025, 3, 31))
        buckets = self.aggregator.bucketize([], "daily", date_range)
        self.assertEqual(len(buckets), 31)
        self.assertEqual(buckets[14].period_label, "Mar 15")
        self.assertTrue(all(b.revenue == 0 for b in buckets))

    def test_weekly_buckets_start_on_monday(self) -> None:
        # 2025-03-01 is a Saturday; Mar 31 is a Monday
        date_range = DateRange(date(2025, 3, 1), date(2025, 3, 31))
        buckets = self.aggregator.bucketize([order(1, "2025-03-12", 10)], "weekly", date_range)

        self.assertEqual(len(buckets), 6)
        self.assertEqual(buckets[0].start, date(2025, 3, 1))
        self.assertEqual(buckets[0].end, date(2025, 3, 2))
        self.assertEqual(buckets[2].period_label, "Week of Mar 10")
        self.assertEqual(buckets[2].orders, 1)
        self.assertEqual(buckets[-1].end, date(2025, 3, 31))

    def test_quarterly_buckets(self) -> None:
        buckets = self.aggregator.bucketize([], "quarterly", DateRange(date(2025, 1, 1), date(2025, 12, 31)))
        self.assertEqual([b.period_label for b in buckets], ["Q1 2025", "Q2 2025", "Q3 2025", "Q4 2025"])

    def test_records_outside_range_are_ignored(self) -> None:
        orders = [order(1, "2025-02-28", 100), order(2, "2025-03-01", 5), order(3, "garbage", 7)]
        buckets = self.aggregator.bucketize(orders, "monthly", DateRange(date(2025, 3, 1), date(2025, 3, 31)))
        self.assertEqual(len(buckets), 1)
        self.assertEqual(buckets[0].revenue, 5.0)

    def test_inverted_range_and_unknown_unit(self) -> None:
        inverted = DateRange(date(2025, 3, 31), date(2025, 3, 1))
        self.assertEqual(self.aggregator.bucketize([], "monthly", inverted), [])
        with self.assertRaises(ValueError):
            self.aggregator.bucketize([], "hourly", DateRange(date(2025, 3, 1), date(2025, 3, 2)))


class GroupSummaryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.aggregator = Aggregator()
        self.orders = [
            order(1, "2025-03-01", 600, "1"),
            order(2, "2025-03-02", 300, "2"),
            order(3, "2025-03-03", 100, "1"),
        ]
        self.dealers = [
            Dealer.from_mapping({"id": 1, "name": "Agro Traders"}),
            Dealer.from_mapping({"id": 2, "name": "Farm Supply"}),
            Dealer.from_mapping({"id": 3, "name": "Green Fields"}),
        ]

    def test_group_by_dimension_shares(self) -> None:
        groups = self.aggregator.group_by_dimension(self.orders, "dealer_id")

        self.assertEqual([g.key for g in groups], ["1", "2"])
        self.assertEqual(groups[0].revenue, 700.0)
        self.assertEqual(groups[0].orders, 2)
        self.assertEqual(groups[0].share, 70.0)
        self.assertEqual(groups[1].share, 30.0)

    def test_missing_dimension_value_is_unknown(self) -> None:
        groups = self.aggregator.group_by_dimension([{"net_amount": 5}], "region")
        self.assertEqual(groups[0].key, "Unknown")

    def test_summarize_entities(self) -> None:
        rows = self.aggregator.summarize_entities(self.orders, self.dealers)

        self.assertEqual([r["name"] for r in rows], ["Agro Traders", "Farm Supply", "Green Fields"])
        self.assertEqual(rows[0]["order_count"], 2)
        self.assertEqual(rows[0]["total_sales"], 700.0)
        self.assertEqual(rows[2]["total_sales"], 0.0)

    def test_summarize_entities_threshold_search_and_limit(self) -> None:
        rows = self.aggregator.summarize_entities(self.orders, self.dealers, min_total=300)
        self.assertEqual([r["name"] for r in rows], ["Agro Traders", "Farm Supply"])

        rows = self.aggregator.summarize_entities(self.orders, self.dealers, search_text="FARM")
        self.assertEqual([r["name"] for r in rows], ["Farm Supply"])

        rows = self.aggregator.summarize_entities(self.orders, self.dealers, limit=1)
        self.assertEqual(len(rows), 1)


if __name__ == "__main__":
    unittest.main()
