from abc import ABC, abstractmethod
from typing import Iterable, List

import asyncpg

from driverbench.logging_config import get_logger
from driverbench.models import BenchmarkResultRow, DriverComparisonResult

logger = get_logger(__name__)

INSERT_RESULT_SQL = """
INSERT INTO benchmark_results (
  driver,
  query_name,
  execution_time_ms,
  sample_count,
  median_ms,
  p95_ms,
  p99_ms,
  min_ms,
  max_ms
) VALUES ($1, $2, $3::float8, $4, $5::float8, $6::float8, $7::float8, $8::float8, $9::float8)
"""


def rows_from_results(results: Iterable[DriverComparisonResult]) -> List[BenchmarkResultRow]:
    """Flatten comparison results into one row per (driver, query)."""
    return [
        BenchmarkResultRow(
            driver=driver_result.driver,
            query_name=result.query_name,
            mean_ms=result.mean,
            sample_count=result.sample_count,
            median_ms=result.median,
            p95_ms=result.p95,
            p99_ms=result.p99,
            min_ms=result.min,
            max_ms=result.max,
        )
        for driver_result in results
        for result in driver_result.results
    ]


class ResultSink(ABC):
    @abstractmethod
    async def insert(self, rows: List[BenchmarkResultRow]) -> None:
        raise NotImplementedError()


class PostgresResultSink(ResultSink):
    """Writes rows into ``benchmark_results``; the mean goes to ``execution_time_ms``."""

    def __init__(self, dsn: str):
        self.dsn = dsn

    async def insert(self, rows: List[BenchmarkResultRow]) -> None:
        if not rows:
            return
        conn = await asyncpg.connect(dsn=self.dsn)
        try:
            await conn.executemany(INSERT_RESULT_SQL, [
                (row.driver, row.query_name, row.mean_ms, row.sample_count, row.median_ms,
                 row.p95_ms, row.p99_ms, row.min_ms, row.max_ms)
                for row in rows
            ])
        finally:
            await conn.close()
        logger.info("Stored %d benchmark result rows", len(rows))
