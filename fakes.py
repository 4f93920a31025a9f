"""
测试用的替身对象: 进度记录、设置/上下文构造、凭据存储、HTTP 会话。
"""
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

import requests

from config import GlobalConfig
from config_manager import CommitHistoryProviderType, ReportSettings
from context import ReportContext
from credentials import Credential, CredentialStore
from generators.base import ReportGenerator
from progress.base import ProgressReporter, ProgressTask


class RecordingProgressTask(ProgressTask):
    def __init__(self, description: str, total: float):
        self.description = description
        self.total = total
        self.increments: List[float] = []

    @property
    def completed(self) -> float:
        return sum(self.increments)

    def increment(self, advance: float):
        self.increments.append(advance)


class RecordingProgressReporter(ProgressReporter):
    def __init__(self):
        self.tasks: List[RecordingProgressTask] = []

    @property
    def descriptions(self) -> List[str]:
        return [t.description for t in self.tasks]

    def add_task(self, description: str, total: float = 100.0) -> ProgressTask:
        task = RecordingProgressTask(description, total)
        self.tasks.append(task)
        return task


def make_settings(**overrides) -> ReportSettings:
    values = dict(
        employee_full_name="Jane Doe",
        employee_email="jane.doe@example.com",
        employee_job_position="Software Engineer",
        employee_folder_name=r"\\fileserver\jane.doe",
        controler_full_name="John Smith",
        controler_job_position="Engineering Manager",
        project_name="Galera 1.0",
        commit_history_provider=CommitHistoryProviderType.LOCAL,
        project_git_directory="/tmp/projects",
    )
    values.update(overrides)
    return ReportSettings(**values)


def make_context(
    settings: Optional[ReportSettings] = None,
    working_month: date = date(2024, 3, 1),
    working_days: int = 21,
    absence_days: int = 2,
) -> ReportContext:
    return ReportContext(
        settings=settings or make_settings(),
        working_month=working_month,
        working_days=working_days,
        absence_days=absence_days,
        global_config=GlobalConfig(),
    )


class FakeCredentialStore(CredentialStore):
    """service -> Credential 或异常"""

    def __init__(self, entries: Optional[Dict[str, object]] = None):
        self.entries = entries or {}
        self.requested: List[Tuple[str, str]] = []

    def get(self, service: str, account: str) -> Optional[Credential]:
        self.requested.append((service, account))
        entry = self.entries.get(service)
        if isinstance(entry, Exception):
            raise entry
        return entry


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """按 URL 路由的最小 requests.Session 替身"""

    def __init__(self, handler: Callable[[str, dict], FakeResponse]):
        self.handler = handler
        self.calls: List[Tuple[str, dict]] = []
        self.headers: Dict[str, str] = {}
        self.auth = None
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None):
        params = dict(params or {})
        self.calls.append((url, params))
        return self.handler(url, params)

    def close(self):
        self.closed = True


class FakeStage(ReportGenerator):
    """按预设返回成功、失败或抛出异常的生成阶段"""

    def __init__(self, name, errors=(), raises=None, writes=None, output_dir="Output"):
        super().__init__(RecordingProgressReporter(), output_dir)
        self.name = name
        self.writes = writes
        self.errors = errors
        self.raises = raises
        self.calls = 0

    async def generate(self, context, cancel_event=None):
        self.calls += 1
        if self.raises is not None:
            raise self.raises
        if self.writes:
            with open(self.output_path(self.writes), "w", encoding="utf-8") as f:
                f.write(self.name)
        return self.fail(*self.errors) if self.errors else self.ok()
