import unittest
from datetime import date

from sales_reports.orchestrator import ReportOrchestrator
from sales_reports.state import StateManager


class CountingOrchestrator(ReportOrchestrator):
    def __init__(self):
        super().__init__(today_provider=lambda: date(2025, 6, 15))
        self.loads = 0

    def load(self, date_range=None):
        self.loads += 1


class StateManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = {}
        self.state = StateManager(store=self.store)

    def test_orchestrator_created_once_per_session(self) -> None:
        first = self.state.get_orchestrator(CountingOrchestrator)
        second = self.state.get_orchestrator(CountingOrchestrator)

        self.assertIs(first, second)
        self.assertEqual(first.loads, 1)
        self.assertIsNotNone(self.state.get_loaded_at())

    def test_refresh_reloads_existing_orchestrator(self) -> None:
        report = self.state.get_orchestrator(CountingOrchestrator)
        self.state.refresh()
        self.assertEqual(report.loads, 2)

    def test_clear(self) -> None:
        first = self.state.get_orchestrator(CountingOrchestrator)
        self.state.clear()
        self.assertIsNot(self.state.get_orchestrator(CountingOrchestrator), first)

    def test_export_flags(self) -> None:
        self.state.set_export_state(True)
        self.assertTrue(self.state.is_exporting())

        self.state.record_export("sales_report.csv", "csv")
        self.assertEqual(self.state.get_last_export()["filename"], "sales_report.csv")

    def test_messages_are_shown_once(self) -> None:
        self.state.show_error("Export failed")
        self.assertEqual(self.state.pop_message(), {"type": "error", "text": "Export failed"})
        self.assertIsNone(self.state.pop_message())


if __name__ == "__main__":
    unittest.main()
