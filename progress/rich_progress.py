"""
基于 Rich 的控制台进度条实现。
"""
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .base import ProgressReporter, ProgressTask


class RichProgressTask(ProgressTask):
    def __init__(self, progress: Progress, task_id: TaskID):
        self._progress = progress
        self._task_id = task_id

    def increment(self, advance: float):
        self._progress.advance(self._task_id, advance)


class RichProgressReporter(ProgressReporter):
    """把每个任务渲染为一行进度条 (描述 | 进度条 | 百分比 | 剩余时间)"""

    def __init__(self, progress: Progress):
        self._progress = progress

    def add_task(self, description: str, total: float = 100.0) -> ProgressTask:
        task_id = self._progress.add_task(f"[green]{description}[/]", total=total)
        return RichProgressTask(self._progress, task_id)


@contextmanager
def rich_progress(console: Optional[Console] = None) -> Iterator[RichProgressReporter]:
    """在 with 块内显示进度条，退出后保留最终状态"""
    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )
    with progress:
        yield RichProgressReporter(progress)
