"""
Unit tests for driverbench.runner.
"""

import asyncio

import pytest

from driverbench.exceptions import ExecutionError, InputValidationError
from driverbench.queries import Dialect, TestQuery
from driverbench.runner import CONCURRENCY_CAP, BenchmarkRunner
from tests.fakes import FakeHandle, TaskClock

SIMPLE = TestQuery(name="simple", sql="SELECT 1 AS result")


class TestBenchmarkRunner:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("sample_count", [1, 3, 8, 25])
    async def test_sample_count_invariant(self, observer, sample_count):
        """Test that every run records exactly N samples."""
        runner = BenchmarkRunner(FakeHandle(), observer=observer)

        result = await runner.run(SIMPLE, sample_count)

        assert len(result.times) == sample_count
        assert result.sample_count == sample_count
        assert result.query_name == "simple"
        assert result.min <= result.median <= result.max

    @pytest.mark.asyncio
    async def test_zero_samples(self, observer):
        """Test a run with zero samples."""
        handle = FakeHandle()

        result = await BenchmarkRunner(handle, observer=observer).run(SIMPLE, 0)

        assert result.times == ()
        assert result.sample_count == 0
        assert (result.median, result.mean, result.p95, result.p99, result.min, result.max) == (0, 0, 0, 0, 0, 0)
        assert handle.statements == []

    @pytest.mark.asyncio
    async def test_negative_samples_rejected(self, observer):
        """Test that a negative sample count is rejected."""
        with pytest.raises(InputValidationError):
            await BenchmarkRunner(FakeHandle(), observer=observer).run(SIMPLE, -1)

    @pytest.mark.asyncio
    async def test_times_are_indexed_by_iteration_not_completion(self, observer):
        """Test that times[i] holds iteration i when completions are reordered."""
        sample_count = 20
        clock = TaskClock()
        # later iterations finish sooner, so completion order is reversed
        handle = FakeHandle(
            delay=lambda call: (sample_count - call) * 0.001,
            on_execute=lambda call, statement: clock.advance(call / 1000.0),
        )
        runner = BenchmarkRunner(handle, concurrency_cap=4, clock=clock, observer=observer)

        result = await runner.run(SIMPLE, sample_count)

        assert list(result.times) == pytest.approx([float(i) for i in range(sample_count)])

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded_by_cap(self, observer):
        """Test that the concurrency cap bounds in-flight queries."""
        handle = FakeHandle(max_concurrency=8, delay=0.005)

        await BenchmarkRunner(handle, concurrency_cap=3, observer=observer).run(SIMPLE, 12)

        assert handle.peak_in_flight == 3
        assert len(handle.statements) == 12

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded_by_handle(self, observer):
        """Test that an unpooled handle gets one worker."""
        handle = FakeHandle(max_concurrency=1, delay=0.001)

        await BenchmarkRunner(handle, observer=observer).run(SIMPLE, 5)

        assert handle.peak_in_flight == 1

    def test_worker_count(self, observer):
        """Test the worker count."""
        runner = BenchmarkRunner(FakeHandle(max_concurrency=8), observer=observer)

        assert runner.worker_count(0) == 0
        assert runner.worker_count(3) == 3
        assert runner.worker_count(100) == CONCURRENCY_CAP

    @pytest.mark.asyncio
    async def test_failure_aborts_the_result(self, observer):
        """Test that a failed sample aborts the result with its iteration."""
        handle = FakeHandle(delay=0.001, fail_when=lambda call, statement: call == 5)

        with pytest.raises(ExecutionError) as excinfo:
            await BenchmarkRunner(handle, concurrency_cap=2, observer=observer).run(SIMPLE, 50)

        error = excinfo.value
        assert error.iteration == 5
        assert error.query_name == "simple"
        assert error.driver == "asyncpg"
        assert isinstance(error.__cause__, RuntimeError)
        assert len(handle.statements) < 50
        assert "query_completed" not in observer.names()

    @pytest.mark.asyncio
    async def test_failure_leaves_no_running_workers(self, observer):
        """Test that workers are cancelled after a failure."""
        handle = FakeHandle(delay=0.01, fail_when=lambda call, statement: call == 0)

        with pytest.raises(ExecutionError):
            await BenchmarkRunner(handle, concurrency_cap=4, observer=observer).run(SIMPLE, 40)
        issued = len(handle.statements)
        await asyncio.sleep(0.05)

        assert len(handle.statements) == issued
        assert handle.in_flight == 0

    @pytest.mark.asyncio
    async def test_uses_handle_dialect(self, observer):
        """Test that the handle dialect picks the statement."""
        query = TestQuery(name="dialects", sql="SELECT 'pg'", dialect_sql={Dialect.MYSQL: "SELECT 'my'"})
        handle = FakeHandle(dialect=Dialect.MYSQL)

        await BenchmarkRunner(handle, observer=observer).run(query, 2)

        assert handle.statements == ["SELECT 'my'", "SELECT 'my'"]

    @pytest.mark.asyncio
    async def test_emits_query_completed(self, observer):
        """Test the query_completed event."""
        await BenchmarkRunner(FakeHandle(), observer=observer).run(SIMPLE, 2)

        assert observer.events == [("query_completed", "asyncpg", "simple")]

    def test_rejects_zero_cap(self):
        """Test that the cap must be positive."""
        with pytest.raises(ValueError):
            BenchmarkRunner(FakeHandle(), concurrency_cap=0)
