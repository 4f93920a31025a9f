import asyncio
from typing import Optional

import pdf_converter
from context import ReportContext
from errors import PdfConversionError
from models import StageResult
from .base import ReportGenerator


class PdfReportGenerator(ReportGenerator):
    """report.html -> report.pdf (无头 Chrome)"""

    name = "pdf_report"

    async def generate(
        self, context: ReportContext, cancel_event: Optional[asyncio.Event] = None
    ) -> StageResult:
        config = context.global_config
        task = self.progress.add_task("Saving pdf report in a file.")
        task.increment(50.0)
        try:
            await pdf_converter.convert_html_to_pdf(
                self.output_path(config.HTML_REPORT_FILENAME),
                self.output_path(config.PDF_REPORT_FILENAME),
                config,
            )
        except PdfConversionError as e:
            return self.fail(e)
        finally:
            task.increment(50.0)
        return self.ok()
