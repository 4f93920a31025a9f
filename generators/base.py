import asyncio
import os
from abc import ABC, abstractmethod
from typing import Optional

from context import ReportContext
from models import StageResult
from progress.base import ProgressReporter


class ReportGenerator(ABC):
    """
    报告生成阶段的抽象基类。
    可预期的失败应记录在返回的 StageResult 中，而不是抛出。
    """

    name: str = "report"

    def __init__(self, progress: ProgressReporter, output_dir: str):
        self.progress = progress
        self.output_dir = output_dir

    def output_path(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)

    def ok(self) -> StageResult:
        return StageResult(self.name)

    def fail(self, *errors: Exception) -> StageResult:
        return StageResult(self.name, tuple(errors))

    @abstractmethod
    async def generate(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> StageResult:
        pass
