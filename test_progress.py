import unittest

from rich.console import Console

from progress.base import NullProgressReporter
from progress.rich_progress import rich_progress


class TestProgress(unittest.TestCase):

    def test_rich_progress_advances_task(self):
        console = Console(record=True, width=120)
        with rich_progress(console) as reporter:
            task = reporter.add_task("Getting history of commits.", total=2)
            task.increment(1.0)
            task.increment(1.0)
            state = reporter._progress.tasks[0]

        self.assertEqual(state.completed, 2)
        self.assertTrue(state.finished)

    def test_null_reporter(self):
        task = NullProgressReporter().add_task("anything")
        task.increment(50.0)


if __name__ == "__main__":
    unittest.main()
