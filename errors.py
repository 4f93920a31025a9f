"""
报告生成过程中的异常体系。

所有可预期的失败都继承自 ReportError，并可携带一个底层异常 (cause)，
以便在控制台错误列表中同时展示 "错误信息" 和 "引起错误的源异常"。
"""
from typing import List, Optional


class ReportError(Exception):
    """报告生成错误基类"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ReportError):
    """配置缺失或无效 (组织名、仓库根目录、设置文件等)"""


class CredentialError(ReportError):
    """凭据存储中未找到可用的凭据"""


class ApiConnectionError(ReportError):
    """远程 API / 网络传输失败"""


class PerRepositoryFetchError(ReportError):
    """单个仓库的提交获取失败 (已隔离，不影响其他仓库)"""

    def __init__(self, repository: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"获取仓库 '{repository}' 的提交历史失败{detail}", cause)
        self.repository = repository


class EmptyHistoryError(ReportError):
    """没有任何错误，但所有仓库都没有匹配的提交"""

    def __init__(self, message: str = "未找到任何提交历史 (no commit history found)"):
        super().__init__(message)


class CommitHistoryError(ReportError):
    """所有仓库都未能产出提交，且至少有一个仓库出错"""

    def __init__(self, errors: List[BaseException]):
        super().__init__(f"获取提交历史失败，共 {len(errors)} 个仓库出错")
        self.errors = list(errors)


class PipelineStageError(ReportError):
    """某个生成阶段抛出了未预期的异常"""

    def __init__(self, stage_name: str, cause: BaseException):
        super().__init__(f"生成阶段 '{stage_name}' 执行失败: {cause}", cause)
        self.stage_name = stage_name


class PdfConversionError(ReportError):
    """HTML 转 PDF 失败"""


class OperationCancelledError(ReportError):
    """操作被用户取消 (Ctrl-C)"""

    def __init__(self, message: str = "操作已取消"):
        super().__init__(message)
