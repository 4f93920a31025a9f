import asyncio
import logging
from collections import Counter
from datetime import date, datetime, time
from typing import Any, Callable, Dict, List, Optional

import requests

from .base import CommitHistoryProvider
from commit_fetcher import RepositoryCommitFetcher
from config import GlobalConfig
from config_manager import CommitHistoryProviderType
from context import ReportContext
from credentials import (
    Credential,
    CredentialStore,
    KeyringCredentialStore,
    find_credentials,
)
from errors import ApiConnectionError, ConfigurationError, PerRepositoryFetchError
from models import AggregateResult, Commit, CommitQuery
from progress.base import ProgressReporter

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
PAGE_SIZE = 1000


def default_branch_name(repository: Dict[str, Any]) -> str:
    """refs/heads/develop -> develop，缺失时回退为 main"""
    ref = (repository.get("defaultBranch") or "").strip("/")
    return ref.split("/")[-1] if ref else DEFAULT_BRANCH


def repository_keys(repositories: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    为每个仓库生成唯一的显示名。
    组织内重名的仓库 (位于不同项目) 使用 "项目/仓库" 区分，仍冲突时附加仓库 id。
    """
    named = [r for r in repositories if r.get("name")]
    counts = Counter(r["name"] for r in named)
    keyed: Dict[str, Dict[str, Any]] = {}
    for repository in named:
        key = repository["name"]
        if counts[key] > 1:
            project = (repository.get("project") or {}).get("name")
            key = f"{project}/{key}" if project else f"{key} ({repository.get('id')})"
        if key in keyed:
            key = f"{key} ({repository.get('id')})"
        keyed[key] = repository
    return keyed


def _is_merge(item: Dict[str, Any]) -> bool:
    return len(item.get("parents") or []) > 1


def parse_commit(item: Dict[str, Any]) -> Commit:
    author = item.get("author") or {}
    return Commit(
        id=item["commitId"],
        author_name=author.get("name", ""),
        author_email=author.get("email", ""),
        author_date=date.fromisoformat((author.get("date") or "")[:10]),
        message=(item.get("comment") or "").strip(),
    )


class AzureDevOpsClient:
    """
    Azure DevOps Git REST API 的最小封装 (只读: 仓库列表、提交列表)。
    """

    def __init__(
        self,
        organization: str,
        credential: Credential,
        global_config: GlobalConfig,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = f"{global_config.AZURE_DEVOPS_BASE_URL.rstrip('/')}/{organization}"
        self.api_version = global_config.AZURE_DEVOPS_API_VERSION
        self.timeout = global_config.HTTP_TIMEOUT
        self.session = session or requests.Session()
        self.session.auth = (credential.account, credential.password)
        self.session.headers.update({"Accept": "application/json"})

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = dict(params or {})
        query["api-version"] = self.api_version
        response = self.session.get(
            f"{self.base_url}/{path}", params=query, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def get_repositories(self) -> List[Dict[str, Any]]:
        return self._get("_apis/git/repositories").get("value", [])

    def get_commits(self, repository_id: str, query: CommitQuery) -> List[Dict[str, Any]]:
        params = {
            "searchCriteria.itemVersion.version": query.branch or DEFAULT_BRANCH,
            "searchCriteria.itemVersion.versionType": "branch",
            "searchCriteria.author": query.author,
            "searchCriteria.fromDate": datetime.combine(query.from_date, time.min).isoformat(),
            "searchCriteria.toDate": datetime.combine(query.to_date, time.max).isoformat(
                timespec="seconds"
            ),
            "searchCriteria.$top": PAGE_SIZE,
        }
        items: List[Dict[str, Any]] = []
        skip = 0
        while True:
            params["searchCriteria.$skip"] = skip
            page = self._get(f"_apis/git/repositories/{repository_id}/commits", params)
            values = page.get("value", [])
            items.extend(values)
            if len(values) < PAGE_SIZE:
                return items
            skip += PAGE_SIZE

    def close(self):
        self.session.close()


class AzureDevOpsCommitHistoryProvider(CommitHistoryProvider):
    """
    Azure DevOps 远程数据源实现
    直接访问组织下所有仓库的提交记录，无需本地 clone。
    """

    def __init__(
        self,
        progress: ProgressReporter,
        global_config: GlobalConfig,
        credential_store: Optional[CredentialStore] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        super().__init__(progress, global_config)
        self.credential_store = credential_store or KeyringCredentialStore(
            global_config.CREDENTIAL_NAMESPACE
        )
        self.session_factory = session_factory

    @property
    def provider_type(self) -> CommitHistoryProviderType:
        return CommitHistoryProviderType.AZURE_DEVOPS

    async def get_commits_history(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> AggregateResult:
        settings = context.settings
        organization = (settings.project_ado_organization_name or "").strip()
        if not organization:
            raise ConfigurationError("设置中未配置 Azure DevOps 组织名称，请重新安装本工具。")

        # 1. 凭据
        credential_task = self.progress.add_task("Getting git credentials.")
        credential_task.increment(50.0)
        credential = await asyncio.to_thread(
            find_credentials, self.credential_store, settings.employee_email, organization
        )
        credential_task.increment(50.0)

        # 2. 连接
        connection_task = self.progress.add_task("Connecting to the Azure DevOps Git API.")
        connection_task.increment(50.0)
        try:
            client = AzureDevOpsClient(
                organization, credential, self.global_config, self.session_factory()
            )
        except (requests.RequestException, ValueError) as e:
            raise ApiConnectionError("无法创建 Azure DevOps 客户端。", e) from e
        connection_task.increment(50.0)

        try:
            logger.info(f"🌐 正在连接 Azure DevOps API: {client.base_url} ...")
            try:
                repositories = await asyncio.to_thread(client.get_repositories)
            except (requests.RequestException, ValueError) as e:
                logger.error(f"❌ 获取仓库列表失败: {e}")
                raise ApiConnectionError(
                    f"无法获取组织 {organization} 的仓库列表。", e
                ) from e
            logger.info(f"✅ 组织 {organization} 下共有 {len(repositories)} 个仓库")
            logger.info(f"📅 查询区间: {context.month_start} ~ {context.month_end}")

            history_task = self.progress.add_task(
                "Getting history of commits.", total=max(len(repositories), 1)
            )

            async def fetch_one(repository: Dict[str, Any]) -> List[Commit]:
                query = CommitQuery(
                    from_date=context.month_start,
                    to_date=context.month_end,
                    author=credential.account,
                    branch=default_branch_name(repository),
                )
                try:
                    items = await asyncio.to_thread(
                        client.get_commits, repository["id"], query
                    )
                except (requests.RequestException, ValueError, KeyError) as e:
                    raise PerRepositoryFetchError(repository.get("name", "?"), e) from e

                return [parse_commit(item) for item in items if not _is_merge(item)]

            fetcher = RepositoryCommitFetcher(history_task)
            return await fetcher.fetch_all(
                repository_keys(repositories), fetch_one, cancel_event
            )
        finally:
            client.close()
