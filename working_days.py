"""
工作日查询 (RapidAPI working-days)
未配置 API Key 时使用默认工作日数。
"""
import calendar
import logging
from datetime import date
from typing import Optional

import requests

from config import GlobalConfig
from errors import ApiConnectionError

logger = logging.getLogger(__name__)


def get_working_days_in_month(
    month_start: date,
    api_key: Optional[str],
    global_config: GlobalConfig,
    session: Optional[requests.Session] = None,
) -> int:
    if not api_key:
        logger.info(
            f"ℹ️ 未配置 RapidAPI Key，使用默认工作日数: {global_config.DEFAULT_WORKING_DAYS}"
        )
        return global_config.DEFAULT_WORKING_DAYS

    last_day = calendar.monthrange(month_start.year, month_start.month)[1]
    month_end = month_start.replace(day=last_day)
    url = f"https://{global_config.RAPID_API_HOST}/analyse"
    params = {
        "country_code": global_config.RAPID_API_COUNTRY_CODE,
        "start_date": month_start.isoformat(),
        "end_date": month_end.isoformat(),
    }
    headers = {
        "X-RapidAPI-Key": api_key,
        "X-RapidAPI-Host": global_config.RAPID_API_HOST,
    }

    http = session or requests
    try:
        response = http.get(
            url, params=params, headers=headers, timeout=global_config.HTTP_TIMEOUT
        )
        response.raise_for_status()
        total = int(response.json()["result"]["working_days"]["total"])
    except requests.RequestException as e:
        logger.error(f"❌ 查询工作日失败: {e}")
        raise ApiConnectionError("无法从 RapidAPI 获取本月工作日数。", e) from e
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"❌ 工作日接口返回格式异常: {e}")
        raise ApiConnectionError("RapidAPI 返回的工作日数据格式异常。", e) from e

    logger.info(f"📅 {month_start:%Y-%m} 共有 {total} 个工作日")
    return total
