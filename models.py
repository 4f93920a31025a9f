from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Commit:
    """Git提交数据模型"""

    id: str
    author_name: str
    author_email: str
    author_date: date
    message: str

    @property
    def short_id(self) -> str:
        return self.id[:7]


@dataclass(frozen=True)
class RepositoryCommitSet:
    """单个仓库在查询窗口内的全部匹配提交 (只在有提交时创建)"""

    repository_name: str
    commits: Tuple[Commit, ...]

    def __post_init__(self):
        if not self.commits:
            raise ValueError(f"仓库 '{self.repository_name}' 的提交集合不能为空")


@dataclass(frozen=True)
class CommitQuery:
    """单个仓库的查询条件"""

    from_date: date
    to_date: date
    author: str
    branch: Optional[str] = None


@dataclass(frozen=True)
class FetchOutcome:
    """
    单个仓库的获取结果: 成功 (commit_set 可能为 None，表示没有提交) 或失败 (error)。
    """

    repository_name: str
    commit_set: Optional[RepositoryCommitSet] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, repository_name: str, commits) -> "FetchOutcome":
        commits = tuple(commits)
        commit_set = RepositoryCommitSet(repository_name, commits) if commits else None
        return cls(repository_name=repository_name, commit_set=commit_set)

    @classmethod
    def failure(cls, repository_name: str, error: Exception) -> "FetchOutcome":
        return cls(repository_name=repository_name, error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class AggregateResult:
    """
    所有仓库结果的汇总。
    sets 的插入顺序即完成顺序 (每次运行都可能不同)。
    """

    sets: Dict[str, RepositoryCommitSet] = field(default_factory=dict)
    errors: List[Exception] = field(default_factory=list)

    @property
    def total_commits(self) -> int:
        return sum(len(s.commits) for s in self.sets.values())


@dataclass(frozen=True)
class StageResult:
    """单个生成阶段的结果"""

    stage_name: str
    errors: Tuple[Exception, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PipelineResult:
    """流水线累计结果: 错误列表为各阶段错误的拼接，成功当且仅当所有阶段成功"""

    stage_results: Tuple[StageResult, ...] = ()

    @property
    def errors(self) -> List[Exception]:
        return [e for r in self.stage_results for e in r.errors]

    @property
    def succeeded(self) -> bool:
        return all(r.succeeded for r in self.stage_results)

    def merge(self, stage_result: StageResult) -> "PipelineResult":
        return PipelineResult(self.stage_results + (stage_result,))
