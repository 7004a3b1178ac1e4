import dataclasses
import unittest
from datetime import date

from sales_reports.models import (
    DateRange,
    Dealer,
    FetchResult,
    FetchStatus,
    FilterState,
    OrderItem,
    OrderRecord,
)


class RecordTests(unittest.TestCase):
    def test_order_from_query_row(self) -> None:
        order = OrderRecord.from_mapping({
            "id": 7,
            "order_number": "SO-7",
            "dealer_id": 3.0,
            "order_date": "2025-03-05T10:00:00",
            "status": "Delivered",
            "net_amount": "1500.50",
            "region": "North",
        })

        self.assertEqual(order.id, "7")
        self.assertEqual(order.dealer_id, "3")
        self.assertEqual(order.order_date, "2025-03-05")
        self.assertEqual(order.order_day, date(2025, 3, 5))
        self.assertEqual(order.net_amount, 1500.5)
        self.assertEqual(order["region"], "North")
        self.assertEqual(list(order.keys())[-1], "region")
        self.assertNotIn("extra", order)

    def test_missing_values_are_tolerated(self) -> None:
        order = OrderRecord.from_mapping({"id": 1, "dealer_id": float("nan"), "net_amount": None})
        self.assertIsNone(order.dealer_id)
        self.assertIsNone(order.order_date)
        self.assertEqual(order.net_amount, 0.0)

    def test_unparseable_date_is_kept(self) -> None:
        order = OrderRecord.from_mapping({"id": 1, "order_date": "not-a-date"})
        self.assertEqual(order.order_date, "not-a-date")
        self.assertIsNone(order.order_day)

    def test_records_are_immutable(self) -> None:
        dealer = Dealer.from_mapping({"id": 1, "name": "Agro Traders"})
        with self.assertRaises(dataclasses.FrozenInstanceError):
            dealer.name = "Other"

    def test_mapping_view(self) -> None:
        item = OrderItem.from_mapping({
            "id": 1, "order_id": 9, "product_id": 4, "product_name": "Seeds",
            "quantity": 2, "unit_price": 50, "total_price": 100,
        })
        self.assertEqual(item.get("product_name"), "Seeds")
        self.assertIsNone(item.get("missing"))
        self.assertEqual(item.to_dict()["total_price"], 100.0)
        self.assertEqual(len(item), 7)


class DateRangeTests(unittest.TestCase):
    def test_contains_is_inclusive(self) -> None:
        march = DateRange(date(2025, 3, 1), date(2025, 3, 31))
        self.assertTrue(march.contains(date(2025, 3, 1)))
        self.assertTrue(march.contains(date(2025, 3, 31)))
        self.assertFalse(march.contains(date(2025, 4, 1)))
        self.assertFalse(march.contains(None))
        self.assertEqual(march.days, 31)

    def test_inverted_range_contains_nothing(self) -> None:
        inverted = DateRange(date(2025, 3, 31), date(2025, 3, 1))
        self.assertTrue(inverted.is_inverted)
        self.assertFalse(inverted.contains(date(2025, 3, 15)))
        self.assertEqual(inverted.days, 0)

    def test_previous_period_of_whole_months(self) -> None:
        march = DateRange(date(2025, 3, 1), date(2025, 3, 31))
        self.assertEqual(march.previous_period(), DateRange(date(2025, 2, 1), date(2025, 2, 28)))

        quarter = DateRange(date(2025, 4, 1), date(2025, 6, 30))
        self.assertEqual(quarter.previous_period(), DateRange(date(2025, 1, 1), date(2025, 3, 31)))

    def test_previous_period_of_days(self) -> None:
        week = DateRange(date(2025, 3, 10), date(2025, 3, 16))
        self.assertEqual(week.previous_period(), DateRange(date(2025, 3, 3), date(2025, 3, 9)))

    def test_iso_round_trip(self) -> None:
        date_range = DateRange.from_iso("2025-05-01", "2025-05-31")
        self.assertEqual(date_range.to_iso(), {"from": "2025-05-01", "to": "2025-05-31"})
        with self.assertRaises(ValueError):
            DateRange.from_iso("2025-05-01", "bad")

    def test_filter_state_changes_copy(self) -> None:
        state = FilterState(DateRange(date(2025, 3, 1), date(2025, 3, 31)))
        changed = state.with_changes(search_text="agro")
        self.assertEqual(state.search_text, "")
        self.assertEqual(changed.search_text, "agro")
        self.assertEqual(changed.date_range, state.date_range)


class FetchResultTests(unittest.TestCase):
    def test_failed_is_not_empty(self) -> None:
        failed = FetchResult.failed("timeout")
        empty = FetchResult.success([])

        self.assertTrue(failed.is_failed)
        self.assertFalse(failed.is_empty)
        self.assertTrue(empty.is_success)
        self.assertTrue(empty.is_empty)
        self.assertEqual(FetchResult.pending().status, FetchStatus.PENDING)


if __name__ == "__main__":
    unittest.main()
