import unittest
from datetime import date

from rich.console import Console

import utils
from errors import CommitHistoryError, PerRepositoryFetchError, ReportError


class TestUtils(unittest.TestCase):

    def test_first_day_of_month(self):
        today = date(2024, 3, 17)
        self.assertEqual(utils.first_day_of_month(today=today), date(2024, 3, 1))
        self.assertEqual(utils.first_day_of_month(11, today=today), date(2024, 11, 1))

    def test_flatten_errors(self):
        inner = [PerRepositoryFetchError("a"), PerRepositoryFetchError("b")]
        outer = CommitHistoryError(inner)

        self.assertEqual(utils.flatten_errors([outer]), [outer, *inner])

    def test_describe_cause(self):
        error = ReportError("failed", RuntimeError("boom"))
        self.assertEqual(utils.describe_cause(error), "builtins.RuntimeError: boom")
        self.assertIsNone(utils.describe_cause(ReportError("plain")))

    def test_print_errors(self):
        console = Console(record=True, width=200)

        utils.print_errors(
            [ReportError("first problem", ValueError("bad value")), ReportError("second")],
            console,
        )

        text = console.export_text()
        self.assertIn("first problem", text)
        self.assertIn("builtins.ValueError: bad value", text)
        self.assertIn("second", text)


if __name__ == "__main__":
    unittest.main()
