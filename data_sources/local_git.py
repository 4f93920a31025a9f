import asyncio
import logging
import os
from typing import Dict, List, Optional

from .base import CommitHistoryProvider
from commit_fetcher import RepositoryCommitFetcher
from config_manager import CommitHistoryProviderType
from context import ReportContext
from errors import ConfigurationError, PerRepositoryFetchError
from models import AggregateResult, Commit
import git_utils

logger = logging.getLogger(__name__)


class LocalGitCommitHistoryProvider(CommitHistoryProvider):
    """
    本地 Git 数据源实现。
    项目根目录下的每个直接子目录都视为一个仓库，通过 git 命令行并发读取日志。
    """

    @property
    def provider_type(self) -> CommitHistoryProviderType:
        return CommitHistoryProviderType.LOCAL

    def discover_repositories(self, root_dir: str) -> Dict[str, str]:
        """仓库名 (目录名) -> 仓库路径"""
        with os.scandir(root_dir) as entries:
            paths = sorted(e.path for e in entries if e.is_dir())
        return {os.path.basename(os.path.normpath(p)): p for p in paths}

    async def get_commits_history(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> AggregateResult:
        settings = context.settings
        root_dir = settings.project_git_directory or ""
        if not os.path.isdir(root_dir):
            raise ConfigurationError(
                f"项目目录 '{root_dir}' 不存在，请重新安装 (配置) 本工具。"
            )

        repositories = self.discover_repositories(root_dir)
        logger.info(
            f"🔌 [Local] 在 {root_dir} 下发现 {len(repositories)} 个候选仓库"
        )
        logger.info(f"📅 查询区间: {context.month_start} ~ {context.month_end}")

        task = self.progress.add_task(
            "Getting history of commits.", total=max(len(repositories), 1)
        )
        author_names = settings.author_names
        timeout = self.global_config.GIT_TIMEOUT

        async def fetch_one(repo_path: str) -> List[Commit]:
            name = os.path.basename(os.path.normpath(repo_path))
            args = git_utils.build_git_log_args(
                self.global_config.GIT_EXECUTABLE,
                repo_path,
                context.month_start,
                context.month_end,
                author_names,
            )
            code, stdout, stderr = await git_utils.run_git_command(args, timeout)
            stderr_lines = git_utils.split_lines(stderr)
            if code != 0:
                detail = "; ".join(stderr_lines) or f"exit code {code}"
                raise PerRepositoryFetchError(name, RuntimeError(detail))
            for line in stderr_lines:
                logger.warning(f"⚠️ [{name}] {line}")
            return git_utils.parse_git_log(stdout, settings.employee_email)

        fetcher = RepositoryCommitFetcher(task)
        return await fetcher.fetch_all(repositories, fetch_one, cancel_event)
