"""
Bounded concurrent sampling of one query through one driver.

A fixed number of asyncio workers drain a shared iterator of iteration
indices. Each worker times its claimed iteration around the awaited query and
stores the duration at that index, so ``times[i]`` is always iteration ``i``
no matter which worker ran it or when it finished. Running several samples
at once models pool contention, not serial round-trip time.
"""
import asyncio
import time
from typing import Callable, Iterator

from driverbench.drivers.base import DriverHandle
from driverbench.events import BenchmarkObserver, LoggingObserver
from driverbench.exceptions import ExecutionError, InputValidationError
from driverbench.logging_config import get_logger
from driverbench.models import PerformanceTestResult
from driverbench.queries import TestQuery

logger = get_logger(__name__)

CONCURRENCY_CAP = 8


class BenchmarkRunner:
    def __init__(self,
                 handle: DriverHandle,
                 concurrency_cap: int = CONCURRENCY_CAP,
                 clock: Callable[[], float] = time.perf_counter,
                 observer: BenchmarkObserver | None = None):
        if concurrency_cap < 1:
            raise ValueError("concurrency_cap must be at least 1")
        self.handle = handle
        self.concurrency_cap = concurrency_cap
        self.clock = clock
        self.observer = observer or LoggingObserver()

    def worker_count(self, sample_count: int) -> int:
        return min(self.concurrency_cap, self.handle.max_concurrency, sample_count)

    async def run(self, query: TestQuery, sample_count: int) -> PerformanceTestResult:
        """
        Collect ``sample_count`` timings for ``query``.

        Raises:
            ExecutionError: on the first failed execution. Other workers are
                cancelled and no partial result is returned.
        """
        if sample_count < 0:
            raise InputValidationError(f"sample_count must not be negative, got {sample_count}")

        statement = query.statement_for(self.handle.dialect)
        times = [0.0] * sample_count
        indices = iter(range(sample_count))

        workers = [
            asyncio.create_task(self._worker(query.name, statement, indices, times))
            for _ in range(self.worker_count(sample_count))
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        result = PerformanceTestResult.from_times(query.name, times)
        self.observer.query_completed(self.handle.driver.value, result)
        return result

    async def _worker(self, query_name: str, statement: str, indices: Iterator[int], times: list[float]):
        # claiming from the shared iterator never yields, so each index goes to one worker
        for index in indices:
            start = self.clock()
            try:
                await self.handle.execute(statement)
            except Exception as e:
                raise ExecutionError(
                    f"{self.handle.driver.value} failed on query {query_name!r} "
                    f"(iteration {index}): {e}",
                    driver=self.handle.driver.value,
                    query_name=query_name,
                    iteration=index,
                ) from e
            times[index] = (self.clock() - start) * 1000.0
