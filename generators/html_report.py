import asyncio
import logging
from typing import Optional

from jinja2 import TemplateError

import report_builder
from context import ReportContext
from errors import ReportError
from models import StageResult
from .base import ReportGenerator

logger = logging.getLogger(__name__)


class HtmlReportGenerator(ReportGenerator):
    name = "html_report"

    async def generate(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> StageResult:
        render_task = self.progress.add_task("Generating html report.")
        render_task.increment(50.0)
        data = report_builder.build_html_report_data(context)
        try:
            html_content = report_builder.render_html_report(data, context.global_config)
        except TemplateError as e:
            return self.fail(ReportError("生成 HTML 报告失败。", e))
        render_task.increment(50.0)

        save_task = self.progress.add_task("Saving html report in a file.")
        save_task.increment(50.0)
        path = self.output_path(context.global_config.HTML_REPORT_FILENAME)
        try:
            report_builder.save_report(path, html_content)
        except OSError as e:
            return self.fail(ReportError(f"无法保存 HTML 报告 {path}。", e))
        save_task.increment(50.0)
        return self.ok()
