"""
报告生成流水线
按顺序执行各生成阶段，并把每个阶段的结果合并为一个 PipelineResult。
"""
import asyncio
import logging
from enum import Enum
from typing import Optional, Sequence

from context import ReportContext
from errors import OperationCancelledError, PipelineStageError
from models import PipelineResult, StageResult
from .base import ReportGenerator

logger = logging.getLogger(__name__)


class PipelinePolicy(str, Enum):
    # 每个阶段都会执行，前一阶段失败不影响后续阶段
    CONTINUE_AND_MERGE = "continue_and_merge"
    # 第一个失败的阶段之后停止
    FAIL_FAST = "fail_fast"


class ReportGeneratorPipeline:
    def __init__(
        self,
        stages: Sequence[ReportGenerator],
        policy: PipelinePolicy = PipelinePolicy.CONTINUE_AND_MERGE,
    ):
        self.stages = list(stages)
        self.policy = policy

    async def run(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> PipelineResult:
        result = PipelineResult()

        for stage in self.stages:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError()

            logger.info(f"🚀 执行生成阶段: {stage.name}")
            try:
                stage_result = await stage.generate(context, cancel_event)
            except (OperationCancelledError, asyncio.CancelledError):
                raise
            except Exception as e:
                logger.error(f"❌ 生成阶段 {stage.name} 异常: {e}", exc_info=True)
                stage_result = StageResult(stage.name, (PipelineStageError(stage.name, e),))

            result = result.merge(stage_result)

            if stage_result.succeeded:
                logger.info(f"✅ 生成阶段 {stage.name} 完成")
            else:
                logger.error(
                    f"❌ 生成阶段 {stage.name} 失败 ({len(stage_result.errors)} 个错误)"
                )
                if self.policy is PipelinePolicy.FAIL_FAST:
                    logger.warning("⚠️ fail-fast 模式，跳过其余生成阶段")
                    break

        return result
