"""
运行时上下文的数据模型
"""
import calendar
from dataclasses import dataclass
from datetime import date

from config import GlobalConfig
from config_manager import ReportSettings


@dataclass(frozen=True)
class ReportContext:
    """
    封装一次报告生成所需的全部输入。
    在进入流水线之前构建完成，之后被所有生成阶段共享且不再修改。
    """

    settings: ReportSettings
    # 工作月份 (该月第一天)
    working_month: date
    working_days: int
    absence_days: int
    global_config: GlobalConfig

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.working_month.month]

    @property
    def month_start(self) -> date:
        return self.working_month.replace(day=1)

    @property
    def month_end(self) -> date:
        last_day = calendar.monthrange(self.working_month.year, self.working_month.month)[1]
        return self.working_month.replace(day=last_day)
