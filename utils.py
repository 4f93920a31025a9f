import logging
import sys
import os
import subprocess
from datetime import date
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from errors import CommitHistoryError, ReportError


# 将日志配置移到这里，作为一个可被调用的函数
def setup_logging(log_file: Optional[str] = None):
    """配置全局日志"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def first_day_of_month(month: Optional[int] = None, today: Optional[date] = None) -> date:
    """返回当年指定月份 (默认当前月份) 的第一天"""
    today = today or date.today()
    return date(today.year, month or today.month, 1)


def flatten_errors(errors: List[BaseException]) -> List[BaseException]:
    """展开 CommitHistoryError 中携带的各仓库错误"""
    flat: List[BaseException] = []
    for error in errors:
        flat.append(error)
        if isinstance(error, CommitHistoryError):
            flat.extend(error.errors)
    return flat


def describe_cause(error: BaseException) -> Optional[str]:
    """返回 "<源>: <信息>" 形式的底层异常描述"""
    cause = error.cause if isinstance(error, ReportError) else error.__cause__
    if cause is None:
        return None
    source = f"{type(cause).__module__}.{type(cause).__name__}"
    return f"{source}: {cause}"


def print_errors(errors: List[BaseException], console: Optional[Console] = None):
    """以带序号的表格输出所有错误"""
    console = console or Console()
    table = Table()
    table.add_column("N")
    table.add_column("Error", justify="center")

    for index, error in enumerate(flatten_errors(errors), start=1):
        grid = Table.grid()
        grid.add_column(justify="left", no_wrap=True)
        grid.add_row(Text(str(error), style="red"))
        cause = describe_cause(error)
        if cause:
            grid.add_row("")
            grid.add_row(Text(cause, style="orange_red1"))
        table.add_row(Text(str(index)), grid)

    console.print(table)


def open_directory(path: str):
    """在文件管理器中打开输出目录"""
    logger = logging.getLogger(__name__)
    try:
        if os.name == "nt":  # Windows
            os.startfile(path)
        elif sys.platform == "darwin":
            subprocess.run(["open", path], check=False)
        else:
            subprocess.run(["xdg-open", path], check=False)
        logger.info(f"📂 已打开输出目录: {path}")
    except OSError as e:
        logger.warning(f"无法自动打开目录，请手动打开: {path}, 错误: {e}")
