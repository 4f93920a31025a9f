"""
提交历史汇总
把各仓库的获取结果合并为一个结果集，并决定整体是成功、空历史还是失败。
"""
import logging
from typing import Iterable

from errors import CommitHistoryError, EmptyHistoryError
from models import AggregateResult, FetchOutcome

logger = logging.getLogger(__name__)


def add_outcome(aggregate: AggregateResult, outcome: FetchOutcome):
    """把单个仓库的结果并入汇总 (只有成功且非空的结果才会进入 sets)"""
    if outcome.error is not None:
        aggregate.errors.append(outcome.error)
    elif outcome.commit_set is not None:
        aggregate.sets[outcome.repository_name] = outcome.commit_set


def aggregate_outcomes(outcomes: Iterable[FetchOutcome]) -> AggregateResult:
    result = AggregateResult()
    for outcome in outcomes:
        add_outcome(result, outcome)
    return result


def resolve(aggregate: AggregateResult) -> AggregateResult:
    """
    - 至少一个仓库有提交: 成功，其余仓库的错误仅作为诊断信息保留
    - 没有提交且有错误: CommitHistoryError (携带全部错误)
    - 没有提交也没有错误: EmptyHistoryError
    """
    if aggregate.sets:
        for error in aggregate.errors:
            logger.warning(f"⚠️ 部分仓库获取失败 (已忽略): {error}")
        logger.info(
            f"✅ 共获取 {aggregate.total_commits} 个提交，来自 {len(aggregate.sets)} 个仓库"
        )
        return aggregate

    if aggregate.errors:
        logger.error(f"❌ 所有仓库都未获取到提交，{len(aggregate.errors)} 个仓库出错")
        raise CommitHistoryError(aggregate.errors)

    logger.error("❌ 未获取到提交记录")
    raise EmptyHistoryError()
