from abc import ABC, abstractmethod


class ProgressTask(ABC):
    """
    进度任务句柄。
    核心代码只会调用 increment，从不回读进度状态。
    """

    @abstractmethod
    def increment(self, advance: float):
        pass


class ProgressReporter(ABC):
    """
    进度输出的抽象接口 (控制台进度条、无界面实现等)。
    """

    @abstractmethod
    def add_task(self, description: str, total: float = 100.0) -> ProgressTask:
        pass


class _NullProgressTask(ProgressTask):
    def increment(self, advance: float):
        pass


class NullProgressReporter(ProgressReporter):
    """不输出任何内容的进度实现 (无界面运行 / 测试用)"""

    def add_task(self, description: str, total: float = 100.0) -> ProgressTask:
        return _NullProgressTask()
