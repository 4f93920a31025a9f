"""
配置管理器
- 负责报告设置文件 (settings.json) 的加载与保存
- 负责校验设置内容 (规则与安装向导写入的字段一一对应)
"""

import os
import json
import logging
import re
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from errors import ConfigurationError

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")

# 兼容旧版 (PascalCase) 设置文件的字段名
_LEGACY_KEYS = {
    "EmployeeFullName": "employee_full_name",
    "EmployeeEmail": "employee_email",
    "EmployeeJobPosition": "employee_job_position",
    "EmployeeFolderName": "employee_folder_name",
    "ControlerFullName": "controler_full_name",
    "ControlerJobPosition": "controler_job_position",
    "ProjectName": "project_name",
    "ProjectGitDirectory": "project_git_directory",
    "ProjectAdoOrganizationName": "project_ado_organization_name",
    "RapidApiKey": "rapid_api_key",
    "GitCommitHistoryProvider": "commit_history_provider",
}


class CommitHistoryProviderType(str, Enum):
    """提交历史数据源类型 (安装时选定，运行期间不变)"""

    AZURE_DEVOPS = "azure_devops"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Any) -> Optional["CommitHistoryProviderType"]:
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        # 旧版设置文件以枚举序号保存: 0 = AzureDevOps, 1 = Local
        if isinstance(value, int):
            return list(cls)[value] if 0 <= value < len(cls) else None
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized in ("azuredevops", "ado"):
            normalized = cls.AZURE_DEVOPS.value
        try:
            return cls(normalized)
        except ValueError:
            return None


@dataclass
class ReportSettings:
    """一次安装对应的报告设置"""

    employee_full_name: str = ""
    employee_email: str = ""
    employee_job_position: str = ""
    employee_folder_name: str = ""
    controler_full_name: str = ""
    controler_job_position: str = ""
    project_name: str = ""
    commit_history_provider: Optional[CommitHistoryProviderType] = None
    project_git_directory: Optional[str] = None
    project_ado_organization_name: Optional[str] = None
    rapid_api_key: Optional[str] = None
    # 除全名外，本地 git 中可能出现的其他作者名
    git_author_aliases: List[str] = field(default_factory=list)

    @property
    def author_names(self) -> List[str]:
        names = [self.employee_full_name, *self.git_author_aliases]
        return [n.strip() for n in names if n and n.strip()]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportSettings":
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            key = _LEGACY_KEYS.get(key, key)
            if key in known:
                values[key] = value
        values["commit_history_provider"] = CommitHistoryProviderType.parse(
            values.get("commit_history_provider")
        )
        aliases = values.get("git_author_aliases") or []
        if isinstance(aliases, str):
            aliases = [a.strip() for a in aliases.split(",") if a.strip()]
        values["git_author_aliases"] = list(aliases)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.commit_history_provider is not None:
            data["commit_history_provider"] = self.commit_history_provider.value
        return data


def load_report_settings(settings_path: str) -> ReportSettings:
    """加载设置文件 (必须存在且为 JSON 格式)"""
    if not os.path.exists(settings_path):
        raise ConfigurationError(
            f"设置文件 {settings_path} 不存在，请先安装 (配置) 本工具。"
        )
    if os.path.splitext(settings_path)[1].lower() != ".json":
        raise ConfigurationError("设置文件必须是 JSON 格式。")

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"无法读取设置文件 {settings_path}。", e) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"无法解析设置文件 {settings_path} 中的 JSON。")

    logger.info(f"✅ 已加载设置文件: {settings_path}")
    return ReportSettings.from_dict(data)


def save_report_settings(settings_path: str, settings: ReportSettings):
    """保存设置文件"""
    try:
        directory = os.path.dirname(os.path.abspath(settings_path))
        os.makedirs(directory, exist_ok=True)
        with open(settings_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=4, ensure_ascii=False)
    except OSError as e:
        raise ConfigurationError(f"无法保存设置文件 {settings_path}。", e) from e
    logger.info(f"✅ 设置已保存至 {settings_path}")


def validate_report_settings(settings: ReportSettings) -> List[str]:
    """校验设置，返回所有校验错误 (为空表示通过)"""
    problems: List[str] = []

    required = {
        "employee_full_name": "员工姓名",
        "employee_job_position": "员工职位",
        "employee_folder_name": "员工远程目录",
        "controler_full_name": "审核人姓名",
        "controler_job_position": "审核人职位",
        "project_name": "项目名称",
    }
    for attr, label in required.items():
        if not (getattr(settings, attr) or "").strip():
            problems.append(f"'{label}' ({attr}) 不能为空。")

    if not _EMAIL_RE.match(settings.employee_email or ""):
        problems.append(f"'{settings.employee_email}' 不是有效的邮箱地址。")

    provider = settings.commit_history_provider
    if provider is None:
        problems.append("请重新安装本工具并选择提交历史数据源。")
    elif provider is CommitHistoryProviderType.AZURE_DEVOPS:
        if not (settings.project_ado_organization_name or "").strip():
            problems.append("请重新安装本工具并为 Azure DevOps 数据源设置组织名称。")
    elif provider is CommitHistoryProviderType.LOCAL:
        if not (settings.project_git_directory or "").strip():
            problems.append("请重新安装本工具并为本地数据源设置项目根目录。")

    if settings.rapid_api_key is not None and not settings.rapid_api_key.strip():
        problems.append("RapidAPI Key 一旦设置就不能为空。")

    return problems
