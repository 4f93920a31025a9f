# report_builder.py
"""
报告生成器 - Jinja2 模板引擎版
- 纯文本提交历史 (Commits.txt)
- KUP 月度报告 HTML (templates/report.html.j2)
"""
import logging
import os
from dataclasses import asdict, dataclass

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from config import GlobalConfig
from context import ReportContext
from models import AggregateResult

logger = logging.getLogger(__name__)

DELIMITER_LINE = "-" * 72


def generate_text_report(aggregate: AggregateResult) -> str:
    """
    生成提交历史的纯文本报告，每个仓库一节:

        PROJECT: <仓库名>:
        <空行>
        <短哈希>, <作者>, <yyyy-MM-dd>, <标题>
        ...
        <空行>
        ------------------------------------------------------------------------
        <空行>
    """
    lines = []
    for repository_name, commit_set in aggregate.sets.items():
        lines.append(f"PROJECT: {repository_name}:")
        lines.append("")
        for commit in commit_set.commits:
            lines.append(
                f"{commit.short_id}, {commit.author_name}, "
                f"{commit.author_date:%Y-%m-%d}, {commit.message}"
            )
        lines.append("")
        lines.append(DELIMITER_LINE)
        lines.append("")
    return "\n".join(lines) + "\n" if lines else ""


@dataclass(frozen=True)
class HtmlReportData:
    """HTML 模板可用的全部字段"""

    month_name: str
    working_days: int
    absence_days: int
    project_name: str
    employee_full_name: str
    employee_job_position: str
    employee_commits_path: str
    controler_full_name: str
    controler_job_position: str


def build_html_report_data(context: ReportContext) -> HtmlReportData:
    settings = context.settings
    month = context.working_month
    # 远程共享目录使用 Windows 路径分隔符
    commits_path = "\\".join(
        [
            settings.employee_folder_name,
            f"{month:%Y}",
            f"{month:%m}",
            context.global_config.COMMITS_HISTORY_FILENAME,
        ]
    )
    return HtmlReportData(
        month_name=context.month_name,
        working_days=context.working_days,
        absence_days=context.absence_days,
        project_name=settings.project_name,
        employee_full_name=settings.employee_full_name,
        employee_job_position=settings.employee_job_position,
        employee_commits_path=commits_path,
        controler_full_name=settings.controler_full_name,
        controler_job_position=settings.controler_job_position,
    )


def render_html_report(data: HtmlReportData, global_config: GlobalConfig) -> str:
    """
    使用 Jinja2 模板引擎生成 HTML 报告。
    模板错误会原样抛出，由调用方转换为阶段错误。
    """
    env = Environment(
        loader=FileSystemLoader(global_config.templates_dir()),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template_name = global_config.HTML_TEMPLATE_NAME
    try:
        template = env.get_template(template_name)
        logger.info(f"🎨 正在渲染 Jinja2 模板: {template_name}")
        return template.render(**asdict(data))
    except TemplateError as e:
        logger.error(f"❌ Jinja2 模板渲染失败: {e}", exc_info=True)
        raise


def save_report(path: str, content: str) -> str:
    """以 UTF-8 保存报告文件 (自动创建目录)"""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info(f"✅ 报告已保存: {path}")
    return path
