# data_sources/factory.py
import logging
from typing import Optional

from config import GlobalConfig
from config_manager import CommitHistoryProviderType, ReportSettings
from credentials import CredentialStore
from errors import ConfigurationError
from progress.base import ProgressReporter
from .base import CommitHistoryProvider
from .azure_devops import AzureDevOpsCommitHistoryProvider
from .local_git import LocalGitCommitHistoryProvider

logger = logging.getLogger(__name__)


def get_commit_history_provider(
    settings: ReportSettings,
    progress: ProgressReporter,
    global_config: GlobalConfig,
    credential_store: Optional[CredentialStore] = None,
) -> CommitHistoryProvider:
    """
    数据源工厂
    数据源类型在安装时写入设置文件，运行期间不再改变。
    """
    provider = settings.commit_history_provider

    if provider is CommitHistoryProviderType.AZURE_DEVOPS:
        logger.info("🔌 [Factory] 初始化数据源: Azure DevOps API")
        return AzureDevOpsCommitHistoryProvider(progress, global_config, credential_store)

    if provider is CommitHistoryProviderType.LOCAL:
        logger.info("🔌 [Factory] 初始化数据源: Local Git")
        return LocalGitCommitHistoryProvider(progress, global_config)

    raise ConfigurationError(f"不支持的提交历史数据源: {provider!r}，请重新安装本工具。")
