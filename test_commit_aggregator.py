import unittest
from datetime import date

import commit_aggregator
from errors import CommitHistoryError, EmptyHistoryError, PerRepositoryFetchError
from models import Commit, FetchOutcome, PipelineResult, RepositoryCommitSet, StageResult

COMMIT = Commit("abc1234def", "Jane Doe", "jane@example.com", date(2024, 3, 1), "Fix bug")


class TestCommitAggregator(unittest.TestCase):

    def test_non_empty_set_wins_over_errors(self):
        error = PerRepositoryFetchError("B", RuntimeError("down"))
        aggregate = commit_aggregator.aggregate_outcomes(
            [FetchOutcome.success("A", [COMMIT]), FetchOutcome.failure("B", error)]
        )

        with self.assertLogs("commit_aggregator", level="WARNING"):
            resolved = commit_aggregator.resolve(aggregate)

        self.assertEqual(list(resolved.sets), ["A"])
        self.assertEqual(resolved.errors, [error])
        self.assertEqual(resolved.total_commits, 1)

    def test_empty_and_healthy(self):
        aggregate = commit_aggregator.aggregate_outcomes(
            [FetchOutcome.success("A", []), FetchOutcome.success("B", [])]
        )
        with self.assertRaises(EmptyHistoryError):
            commit_aggregator.resolve(aggregate)

    def test_all_failed(self):
        errors = [
            PerRepositoryFetchError("A", RuntimeError("one")),
            PerRepositoryFetchError("B", RuntimeError("two")),
        ]
        aggregate = commit_aggregator.aggregate_outcomes(
            [FetchOutcome.failure("A", errors[0]), FetchOutcome.failure("B", errors[1])]
        )

        with self.assertRaises(CommitHistoryError) as ctx:
            commit_aggregator.resolve(aggregate)
        self.assertEqual(ctx.exception.errors, errors)

    def test_empty_success_has_no_set(self):
        outcome = FetchOutcome.success("A", [])
        self.assertTrue(outcome.succeeded)
        self.assertIsNone(outcome.commit_set)

    def test_commit_set_must_not_be_empty(self):
        with self.assertRaises(ValueError):
            RepositoryCommitSet("A", ())


class TestPipelineResult(unittest.TestCase):

    def test_merge_concatenates_errors(self):
        first = StageResult("one")
        second = StageResult("two", (RuntimeError("x"),))

        result = PipelineResult().merge(first).merge(second)

        self.assertFalse(result.succeeded)
        self.assertEqual([str(e) for e in result.errors], ["x"])
        self.assertTrue(PipelineResult().merge(first).succeeded)


if __name__ == "__main__":
    unittest.main()
