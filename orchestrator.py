# orchestrator.py
"""
业务逻辑编排器
- 根据设置创建数据源
- 组装 提交历史 -> HTML -> PDF 三个生成阶段并执行流水线
- Ctrl-C 触发协作式取消
"""
import asyncio
import logging
import os
import signal
from typing import List, Optional

from rich.console import Console

from context import ReportContext
from credentials import CredentialStore
from data_sources.factory import get_commit_history_provider
from errors import OperationCancelledError, ReportError
from generators.commits_history import CommitsHistoryReportGenerator
from generators.html_report import HtmlReportGenerator
from generators.pdf_report import PdfReportGenerator
from generators.pipeline import PipelinePolicy, ReportGeneratorPipeline
from models import PipelineResult
from progress.base import ProgressReporter
from progress.rich_progress import rich_progress
import utils

logger = logging.getLogger(__name__)


class ReportOrchestrator:
    """
    负责执行报告生成的核心业务逻辑。
    """

    def __init__(
        self,
        context: ReportContext,
        output_dir: Optional[str] = None,
        policy: PipelinePolicy = PipelinePolicy.CONTINUE_AND_MERGE,
        open_output: bool = True,
        credential_store: Optional[CredentialStore] = None,
        console: Optional[Console] = None,
    ):
        self.context = context
        self.global_config = context.global_config
        self.output_dir = output_dir or self.global_config.output_dir()
        self.policy = policy
        self.open_output = open_output
        self.credential_store = credential_store
        self.console = console or Console()

    def build_pipeline(self, progress: ProgressReporter) -> ReportGeneratorPipeline:
        provider = get_commit_history_provider(
            self.context.settings, progress, self.global_config, self.credential_store
        )
        return ReportGeneratorPipeline(
            [
                CommitsHistoryReportGenerator(progress, self.output_dir, provider),
                HtmlReportGenerator(progress, self.output_dir),
                PdfReportGenerator(progress, self.output_dir),
            ],
            self.policy,
        )

    async def run_async(self, progress: ProgressReporter) -> PipelineResult:
        cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        restore = _install_interrupt_handler(loop, cancel_event)
        try:
            pipeline = self.build_pipeline(progress)
            return await pipeline.run(self.context, cancel_event)
        finally:
            restore()

    def report_paths(self) -> List[str]:
        """本次运行会生成的报告文件"""
        config = self.global_config
        return [
            os.path.join(self.output_dir, name)
            for name in (
                config.COMMITS_HISTORY_FILENAME,
                config.HTML_REPORT_FILENAME,
                config.PDF_REPORT_FILENAME,
            )
        ]

    def remove_previous_reports(self):
        for path in self.report_paths():
            if os.path.exists(path):
                os.remove(path)
                logger.info(f"🧹 已删除上次生成的报告: {path}")

    def run(self) -> bool:
        """
        执行核心业务流程，返回是否全部成功。
        """
        os.makedirs(self.output_dir, exist_ok=True)
        logger.info(f"📂 输出目录: {self.output_dir}")
        try:
            self.remove_previous_reports()
        except OSError as e:
            utils.print_errors([ReportError("无法清理输出目录中的旧报告。", e)], self.console)
            return False

        try:
            with rich_progress(self.console) as progress:
                result = asyncio.run(self.run_async(progress))
        except OperationCancelledError as e:
            logger.warning(f"⚠️ {e}")
            self.console.print(f"[yellow]{e}[/]")
            return False
        except ReportError as e:
            utils.print_errors([e], self.console)
            return False

        if not result.succeeded:
            utils.print_errors(result.errors, self.console)
            return False

        if any(os.path.exists(path) for path in self.report_paths()):
            self.console.print("[blue]Done[/]. Reports are successfully generated.")
            self.console.print(f"Open [blue]{self.output_dir}[/] folder to check the reports.")
            if self.open_output:
                utils.open_directory(self.output_dir)
        else:
            self.console.print("[blue]Done[/]. No reports were created.")
        return True


def _install_interrupt_handler(loop: asyncio.AbstractEventLoop, cancel_event: asyncio.Event):
    """把 Ctrl-C 转换为取消事件，返回用于恢复原处理器的函数"""
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        return lambda: loop.remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows 事件循环不支持 add_signal_handler
        previous = signal.getsignal(signal.SIGINT)
        try:
            signal.signal(
                signal.SIGINT, lambda *_: loop.call_soon_threadsafe(cancel_event.set)
            )
        except ValueError:
            # 非主线程
            return lambda: None
        return lambda: signal.signal(signal.SIGINT, previous)
