"""
全局配置
- 从脚本目录 (或 CWD) 的 .env 加载环境变量
- 所有可调参数都以类属性的形式暴露在 GlobalConfig 上
"""
import os
from typing import List
from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
else:
    load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value.strip().isdigit() else default


class GlobalConfig:
    """
    KUP 报告生成器的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    TEMPLATES_DIR_NAME: str = "templates"
    OUTPUT_DIR_NAME: str = os.getenv("KUP_OUTPUT_DIR", "Output")
    SETTINGS_FILE: str = os.getenv("KUP_SETTINGS_FILE", "settings.json")

    # --- 文件名 ---
    COMMITS_HISTORY_FILENAME: str = "Commits.txt"
    HTML_REPORT_FILENAME: str = "report.html"
    PDF_REPORT_FILENAME: str = "report.pdf"
    HTML_TEMPLATE_NAME: str = "report.html.j2"

    # --- 日志 ---
    LOG_FILE: str = os.getenv("KUP_LOG_FILE", "")

    # --- Git ---
    GIT_EXECUTABLE: str = os.getenv("GIT_EXECUTABLE", "git")
    GIT_TIMEOUT: int = _env_int("GIT_TIMEOUT", 120)

    # =================================================================
    # --- Azure DevOps ---
    # =================================================================
    AZURE_DEVOPS_BASE_URL: str = os.getenv(
        "AZURE_DEVOPS_BASE_URL", "https://dev.azure.com"
    )
    AZURE_DEVOPS_API_VERSION: str = os.getenv("AZURE_DEVOPS_API_VERSION", "7.0")
    HTTP_TIMEOUT: int = _env_int("HTTP_TIMEOUT", 30)

    # 凭据存储中的命名空间 (keyring service 前缀)
    CREDENTIAL_NAMESPACE: str = os.getenv("KUP_CREDENTIAL_NAMESPACE", "")

    # =================================================================
    # --- PDF (无头 Chrome) ---
    # =================================================================
    CHROME_PATH: str = os.getenv("CHROME_PATH", "")
    CHROME_CANDIDATES: List[str] = [
        "google-chrome",
        "google-chrome-stable",
        "chromium",
        "chromium-browser",
        "chrome",
        "msedge",
    ]
    PDF_TIMEOUT: int = _env_int("PDF_TIMEOUT", 60)

    # =================================================================
    # --- 工作日 (RapidAPI) ---
    # =================================================================
    RAPID_API_HOST: str = "working-days.p.rapidapi.com"
    RAPID_API_COUNTRY_CODE: str = os.getenv("RAPID_API_COUNTRY_CODE", "PL")
    DEFAULT_WORKING_DAYS: int = 21

    def output_dir(self) -> str:
        return os.path.join(os.getcwd(), self.OUTPUT_DIR_NAME)

    def templates_dir(self) -> str:
        return os.path.join(self.SCRIPT_BASE_PATH, self.TEMPLATES_DIR_NAME)
