import asyncio
import logging
from typing import Optional

import commit_aggregator
import report_builder
from context import ReportContext
from data_sources.base import CommitHistoryProvider
from errors import OperationCancelledError, ReportError
from models import StageResult
from progress.base import ProgressReporter
from .base import ReportGenerator

logger = logging.getLogger(__name__)


class CommitsHistoryReportGenerator(ReportGenerator):
    """数据源 -> 汇总判定 -> Commits.txt"""

    name = "commits_history"

    def __init__(
        self,
        progress: ProgressReporter,
        output_dir: str,
        provider: CommitHistoryProvider,
    ):
        super().__init__(progress, output_dir)
        self.provider = provider

    async def generate(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> StageResult:
        try:
            aggregate = await self.provider.get_commits_history(context, cancel_event)
            aggregate = commit_aggregator.resolve(aggregate)
        except OperationCancelledError:
            raise
        except ReportError as e:
            logger.error(f"❌ 获取提交历史失败: {e}")
            return self.fail(e)

        text_report = report_builder.generate_text_report(aggregate)

        task = self.progress.add_task("Saving commits history in the report file.")
        task.increment(50.0)
        path = self.output_path(context.global_config.COMMITS_HISTORY_FILENAME)
        try:
            report_builder.save_report(path, text_report)
        except OSError as e:
            return self.fail(ReportError(f"无法保存提交历史文件 {path}。", e))
        task.increment(50.0)

        if aggregate.errors:
            # 部分仓库失败不影响本阶段结果
            logger.warning(f"⚠️ {len(aggregate.errors)} 个仓库获取失败，报告中未包含这些仓库")
        return self.ok()
