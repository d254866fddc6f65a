"""
Unit tests for driverbench.sink.
"""

from unittest.mock import AsyncMock, patch

import pytest

from driverbench.models import DriverComparisonResult, PerformanceTestResult
from driverbench.sink import INSERT_RESULT_SQL, PostgresResultSink, rows_from_results


@pytest.fixture
def results():
    return [
        DriverComparisonResult.from_results("asyncpg", [
            PerformanceTestResult.from_times("simple", [1.0, 2.0, 3.0]),
            PerformanceTestResult.from_times("countUsers", [4.0, 4.0]),
        ]),
        DriverComparisonResult.from_results("neon-http", [
            PerformanceTestResult.from_times("simple", [10.0]),
        ]),
    ]


def test_rows_from_results_flattens_driver_and_query(results):
    """Test one row per driver and query."""
    rows = rows_from_results(results)

    assert [(row.driver, row.query_name) for row in rows] == [
        ("asyncpg", "simple"),
        ("asyncpg", "countUsers"),
        ("neon-http", "simple"),
    ]
    first = rows[0]
    assert first.mean_ms == pytest.approx(2.0)
    assert first.median_ms == pytest.approx(2.0)
    assert first.sample_count == 3
    assert (first.min_ms, first.max_ms) == (1.0, 3.0)


def test_rows_from_empty_results():
    """Test flattening no results."""
    assert rows_from_results([]) == []


class TestPostgresResultSink:
    @pytest.mark.asyncio
    async def test_insert_writes_every_row(self, results):
        """Test that insert writes every row with executemany."""
        conn = AsyncMock()
        sink = PostgresResultSink("postgres://localhost/bench")

        with patch("asyncpg.connect", new_callable=AsyncMock, return_value=conn) as connect:
            await sink.insert(rows_from_results(results))

        connect.assert_awaited_once_with(dsn="postgres://localhost/bench")
        sql, args = conn.executemany.await_args.args
        assert sql == INSERT_RESULT_SQL
        assert len(args) == 3
        assert args[0][:4] == ("asyncpg", "simple", pytest.approx(2.0), 3)
        conn.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connection_closed_when_insert_fails(self, results):
        """Test that the connection is closed when the insert fails."""
        conn = AsyncMock()
        conn.executemany.side_effect = RuntimeError("relation benchmark_results does not exist")
        sink = PostgresResultSink("postgres://localhost/bench")

        with patch("asyncpg.connect", new_callable=AsyncMock, return_value=conn):
            with pytest.raises(RuntimeError):
                await sink.insert(rows_from_results(results))

        conn.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_rows_skips_connect(self):
        """Test that no rows means no connection."""
        sink = PostgresResultSink("postgres://localhost/bench")

        with patch("asyncpg.connect", new_callable=AsyncMock) as connect:
            await sink.insert([])

        connect.assert_not_called()
