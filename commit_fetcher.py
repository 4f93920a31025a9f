"""
按仓库并发获取提交历史。

每个仓库启动一个异步任务，所有任务把结果推入同一个队列；
只有 fetch_all 本身 (唯一的消费者) 会从队列取结果并写入汇总，因此无需加锁。
单个仓库失败只会产生一个失败结果，不会取消或阻塞其他仓库。
"""
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Mapping, Optional, TypeVar

from commit_aggregator import add_outcome
from errors import OperationCancelledError, PerRepositoryFetchError
from models import AggregateResult, Commit, FetchOutcome
from progress.base import ProgressTask

logger = logging.getLogger(__name__)

# 取消时的策略: "abort" 表示丢弃已汇总的内容，整体以 OperationCancelledError 结束
CANCELLATION_POLICY = "abort"

R = TypeVar("R")
FetchOne = Callable[[R], Awaitable[Iterable[Commit]]]


class RepositoryCommitFetcher:
    def __init__(
        self,
        progress_task: Optional[ProgressTask] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.progress_task = progress_task
        self.max_concurrency = max_concurrency

    async def fetch_all(
        self,
        repositories: Mapping[str, R],
        fetch_one: FetchOne,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AggregateResult:
        """
        并发获取所有仓库的提交。
        :param repositories: 仓库名 -> 传给 fetch_one 的仓库描述
        :param fetch_one: 获取单个仓库提交的协程函数
        :param cancel_event: 协作式取消标志，每轮取结果前检查一次
        """
        queue: asyncio.Queue = asyncio.Queue()
        semaphore = (
            asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        )

        tasks = [
            asyncio.create_task(
                self._fetch(name, repository, fetch_one, queue, semaphore),
                name=f"fetch-commits:{name}",
            )
            for name, repository in repositories.items()
        ]
        logger.info(f"🚀 已启动 {len(tasks)} 个仓库的提交获取任务")

        aggregate = AggregateResult()
        try:
            for _ in range(len(tasks)):
                outcome = await self._next_outcome(queue, cancel_event)
                if self.progress_task is not None:
                    self.progress_task.increment(1.0)
                add_outcome(aggregate, outcome)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        return aggregate

    @staticmethod
    async def _next_outcome(
        queue: asyncio.Queue, cancel_event: Optional[asyncio.Event]
    ) -> FetchOutcome:
        if cancel_event is None:
            return await queue.get()

        if cancel_event.is_set():
            logger.warning("⚠️ 提交获取已被取消")
            raise OperationCancelledError()

        getter = asyncio.ensure_future(queue.get())
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {getter, canceller}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for future in (getter, canceller):
                if not future.done():
                    future.cancel()

        if getter in done:
            return getter.result()

        logger.warning("⚠️ 提交获取已被取消")
        raise OperationCancelledError()

    @staticmethod
    async def _fetch(
        name: str,
        repository: R,
        fetch_one: FetchOne,
        queue: asyncio.Queue,
        semaphore: Optional[asyncio.Semaphore],
    ):
        try:
            if semaphore is not None:
                async with semaphore:
                    commits = await fetch_one(repository)
            else:
                commits = await fetch_one(repository)
            outcome = FetchOutcome.success(name, commits)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ 仓库 {name} 获取提交失败: {e}")
            error = e if isinstance(e, PerRepositoryFetchError) else PerRepositoryFetchError(name, e)
            outcome = FetchOutcome.failure(name, error)
        queue.put_nowait(outcome)
