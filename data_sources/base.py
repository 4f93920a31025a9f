import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from config import GlobalConfig
from config_manager import CommitHistoryProviderType
from context import ReportContext
from models import AggregateResult
from progress.base import ProgressReporter


class CommitHistoryProvider(ABC):
    """
    提交历史数据源抽象基类
    屏蔽了底层是远程 Azure DevOps API 还是本地 git 仓库的差异。
    """

    def __init__(self, progress: ProgressReporter, global_config: GlobalConfig):
        self.progress = progress
        self.global_config = global_config

    @property
    @abstractmethod
    def provider_type(self) -> CommitHistoryProviderType:
        pass

    @abstractmethod
    async def get_commits_history(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> AggregateResult:
        """
        获取工作月份内员工在所有仓库中的提交。
        返回未经判定的汇总结果 (空历史 / 全部失败由 commit_aggregator.resolve 判定)。
        配置、凭据、连接等整体性错误直接抛出 ReportError 子类。
        """
        pass
