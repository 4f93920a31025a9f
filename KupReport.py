# KupReport.py
"""
KUP 月度报告生成器
  - cli.py: 负责命令行界面和设置加载
  - context.py: 负责运行时上下文模型
  - orchestrator.py: 负责核心业务逻辑
  - KupReport.py: 仅作为主入口启动器
"""

import logging
import sys

# 1. 初始化日志 (必须在所有模块导入之前完成)
import utils
from config import GlobalConfig

utils.setup_logging(GlobalConfig.LOG_FILE or None)

logger = logging.getLogger(__name__)


def main():
    # 延迟导入 cli 模块，确保日志已配置
    import cli

    try:
        cli.run_cli()
    except KeyboardInterrupt:
        logger.warning("⚠️ 操作已取消")
        sys.exit(130)
    except Exception as e:
        # 捕获所有未处理的全局异常
        logger.error(f"❌ 发生未处理的全局异常: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
