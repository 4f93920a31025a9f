# cli.py
"""
命令行界面 (Interface) 层
负责解析参数、加载并校验设置、计算工作日，然后移交给 Orchestrator。
"""
import argparse
import logging
import os
import sys

from rich.console import Console

import config_manager
import git_utils
import utils
from config import GlobalConfig
from context import ReportContext
from errors import ConfigurationError, ReportError
from generators.pipeline import PipelinePolicy
from orchestrator import ReportOrchestrator
from working_days import get_working_days_in_month

logger = logging.getLogger(__name__)


def _month(value: str) -> int:
    month = int(value)
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("月份必须在 1 到 12 之间")
    return month


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("不能为负数")
    return number


def setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="KUP 月度报告生成器",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--settings-file",
        type=str,
        default=None,
        help="设置文件路径 (JSON)。\n(默认: 当前目录下的 settings.json)",
    )
    parser.add_argument(
        "-m",
        "--month",
        type=_month,
        default=None,
        help="报告月份 (1-12，当年)。\n(默认: 当前月份)",
    )
    parser.add_argument(
        "--working-days",
        type=_non_negative,
        default=None,
        help="本月工作日数。\n(默认: 通过 RapidAPI 查询，未配置 Key 时为 21)",
    )
    parser.add_argument(
        "--absence-days",
        type=_non_negative,
        default=0,
        help="本月缺勤天数 (默认: 0)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=None,
        help="报告输出目录。\n(默认: 当前目录下的 Output)",
    )

    # --- 标志 (Flags) ---
    parser.add_argument(
        "--fail-fast", action="store_true", help="任一生成阶段失败后立即停止"
    )
    parser.add_argument(
        "--no-open", action="store_true", help="完成后不自动打开输出目录"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="仅检查运行前提 (git / Git Credential Manager) 后退出",
    )
    return parser


def run_cli(argv=None):
    """主入口点"""
    parser = setup_parser()
    args = parser.parse_args(argv)

    console = Console()
    global_config = GlobalConfig()
    console.rule("[green]KUP Report Generator[/]")

    # 1. 运行前提检查
    if args.check:
        problems = git_utils.check_prerequisites(global_config.GIT_EXECUTABLE)
        if problems:
            utils.print_errors([ConfigurationError(p) for p in problems], console)
            sys.exit(1)
        console.print("[blue]OK[/]. git 与 Git Credential Manager 均可用。")
        sys.exit(0)

    # 2. 加载并校验设置
    settings_path = args.settings_file or os.path.join(
        os.getcwd(), global_config.SETTINGS_FILE
    )
    try:
        settings = config_manager.load_report_settings(settings_path)
    except ConfigurationError as e:
        utils.print_errors([e], console)
        sys.exit(1)

    problems = config_manager.validate_report_settings(settings)
    if problems:
        logger.error(f"❌ 设置文件 {settings_path} 校验失败")
        utils.print_errors([ConfigurationError(p) for p in problems], console)
        sys.exit(1)

    # 3. 工作月份与工作日
    working_month = utils.first_day_of_month(args.month)
    working_days = args.working_days
    if working_days is None:
        try:
            working_days = get_working_days_in_month(
                working_month, settings.rapid_api_key, global_config
            )
        except ReportError as e:
            utils.print_errors([e], console)
            sys.exit(1)

    if args.absence_days > working_days:
        parser.error("缺勤天数不能大于工作日数")

    context = ReportContext(
        settings=settings,
        working_month=working_month,
        working_days=working_days,
        absence_days=args.absence_days,
        global_config=global_config,
    )

    logger.info("=" * 50)
    logger.info("🚀 KUP 报告生成器启动...")
    logger.info(f"   [员工]: {settings.employee_full_name}")
    logger.info(f"   [项目]: {settings.project_name}")
    logger.info(f"   [数据源]: {settings.commit_history_provider.value}")
    logger.info(f"   [月份]: {working_month:%Y-%m} ({context.month_name})")
    logger.info(f"   [工作日/缺勤]: {working_days} / {args.absence_days}")
    logger.info("=" * 50)

    # 4. 运行 Orchestrator
    policy = PipelinePolicy.FAIL_FAST if args.fail_fast else PipelinePolicy.CONTINUE_AND_MERGE
    orchestrator = ReportOrchestrator(
        context,
        output_dir=args.output_dir,
        policy=policy,
        open_output=not args.no_open,
        console=console,
    )
    succeeded = orchestrator.run()
    logger.info("✅ Orchestrator 运行完毕。" if succeeded else "❌ 报告生成失败。")
    sys.exit(0 if succeeded else 1)
