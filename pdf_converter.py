# pdf_converter.py
import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from config import GlobalConfig
from errors import PdfConversionError

logger = logging.getLogger(__name__)

_WINDOWS_CHROME_PATHS = [
    r"%ProgramFiles%\Google\Chrome\Application\chrome.exe",
    r"%ProgramFiles(x86)%\Google\Chrome\Application\chrome.exe",
    r"%LocalAppData%\Google\Chrome\Application\chrome.exe",
    r"%ProgramFiles(x86)%\Microsoft\Edge\Application\msedge.exe",
]


def find_chrome_executable(global_config: GlobalConfig) -> Optional[str]:
    """
    查找可用的 Chrome / Chromium 可执行文件:
    1. CHROME_PATH 环境变量
    2. PATH 中的候选命令
    3. Windows 默认安装路径
    """
    if global_config.CHROME_PATH:
        if os.path.isfile(global_config.CHROME_PATH):
            return global_config.CHROME_PATH
        logger.warning(f"⚠️ CHROME_PATH 指向的文件不存在: {global_config.CHROME_PATH}")

    for candidate in global_config.CHROME_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found

    if os.name == "nt":
        for raw in _WINDOWS_CHROME_PATHS:
            path = os.path.expandvars(raw)
            if os.path.isfile(path):
                return path
    return None


def build_chrome_args(chrome: str, html_path: str, pdf_path: str) -> List[str]:
    return [
        chrome,
        "--headless",
        "--disable-gpu",
        "--no-pdf-header-footer",
        f"--print-to-pdf={os.path.abspath(pdf_path)}",
        Path(html_path).resolve().as_uri(),
    ]


async def convert_html_to_pdf(
    html_path: str, pdf_path: str, global_config: GlobalConfig
) -> str:
    """
    使用无头 Chrome 将 HTML 报告打印为 PDF。
    任何失败都以 PdfConversionError 抛出。
    """
    if not html_path or not os.path.isfile(html_path):
        raise PdfConversionError(f"HTML 报告不存在，无法生成 PDF: {html_path}")
    if not pdf_path:
        raise PdfConversionError("PDF 输出路径不能为空。")

    chrome = find_chrome_executable(global_config)
    if not chrome:
        raise PdfConversionError(
            "系统未找到 Google Chrome / Chromium，请安装浏览器或设置 CHROME_PATH。"
        )

    os.makedirs(os.path.dirname(os.path.abspath(pdf_path)), exist_ok=True)
    # 先删除旧 PDF，之后的存在性检查只认本次生成的文件
    if os.path.exists(pdf_path):
        try:
            os.remove(pdf_path)
        except OSError as e:
            raise PdfConversionError(f"无法删除旧的 PDF 文件: {pdf_path}", e) from e
    command = build_chrome_args(chrome, html_path, pdf_path)
    logger.info("🖨️ 正在调用无头 Chrome 生成 PDF...")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise PdfConversionError(f"无法启动浏览器进程: {chrome}", e) from e

    try:
        _, stderr = await asyncio.wait_for(
            process.communicate(), global_config.PDF_TIMEOUT
        )
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise PdfConversionError(
            f"生成 PDF 超时 ({global_config.PDF_TIMEOUT} 秒)。", e
        ) from e
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()
        logger.error(f"❌ Chrome 失败: {detail}")
        raise PdfConversionError(
            f"生成 PDF 失败 (退出码 {process.returncode})。",
            RuntimeError(detail) if detail else None,
        )

    if not os.path.exists(pdf_path):
        logger.error("❌ PDF 文件未生成 (未知错误)")
        raise PdfConversionError(f"PDF 文件未生成: {pdf_path}")

    logger.info(f"✅ PDF 已生成: {pdf_path}")
    return pdf_path
