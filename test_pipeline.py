import asyncio
import unittest

from errors import OperationCancelledError, PipelineStageError, ReportError
from fakes import FakeStage, make_context
from generators.pipeline import PipelinePolicy, ReportGeneratorPipeline


class TestReportGeneratorPipeline(unittest.IsolatedAsyncioTestCase):

    async def test_continue_and_merge(self):
        """[成功, 失败, 成功] -> 三个阶段都执行，结果只包含第二阶段的错误"""
        error = ReportError("stage two failed")
        stages = [FakeStage("one"), FakeStage("two", (error,)), FakeStage("three")]

        result = await ReportGeneratorPipeline(stages).run(make_context())

        self.assertEqual([s.calls for s in stages], [1, 1, 1])
        self.assertFalse(result.succeeded)
        self.assertEqual(result.errors, [error])
        self.assertEqual([r.stage_name for r in result.stage_results], ["one", "two", "three"])

    async def test_all_succeed(self):
        result = await ReportGeneratorPipeline([FakeStage("one"), FakeStage("two")]).run(
            make_context()
        )
        self.assertTrue(result.succeeded)
        self.assertEqual(result.errors, [])

    async def test_unexpected_exception_becomes_stage_error(self):
        stages = [FakeStage("one", raises=KeyError("missing")), FakeStage("two")]

        result = await ReportGeneratorPipeline(stages).run(make_context())

        self.assertEqual(stages[1].calls, 1)
        self.assertEqual(len(result.errors), 1)
        error = result.errors[0]
        self.assertIsInstance(error, PipelineStageError)
        self.assertEqual(error.stage_name, "one")
        self.assertIsInstance(error.cause, KeyError)

    async def test_fail_fast(self):
        stages = [FakeStage("one", (ReportError("x"),)), FakeStage("two")]

        result = await ReportGeneratorPipeline(stages, PipelinePolicy.FAIL_FAST).run(
            make_context()
        )

        self.assertEqual(stages[1].calls, 0)
        self.assertEqual(len(result.stage_results), 1)

    async def test_cancellation_propagates(self):
        stages = [FakeStage("one", raises=OperationCancelledError()), FakeStage("two")]
        with self.assertRaises(OperationCancelledError):
            await ReportGeneratorPipeline(stages).run(make_context())
        self.assertEqual(stages[1].calls, 0)

    async def test_cancel_event_stops_before_next_stage(self):
        cancel_event = asyncio.Event()
        cancel_event.set()
        stage = FakeStage("one")
        with self.assertRaises(OperationCancelledError):
            await ReportGeneratorPipeline([stage]).run(make_context(), cancel_event)
        self.assertEqual(stage.calls, 0)


if __name__ == "__main__":
    unittest.main()
