"""
Cross-driver comparison.

Drivers are benchmarked one after another, never concurrently, so one
driver's load cannot skew another's numbers. A driver that fails for any
reason is left out of the result; only when every driver fails is the run
itself an error.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from driverbench.config import BenchmarkSettings
from driverbench.drivers.base import DriverType
from driverbench.drivers.factory import DriverFactory, parse_driver_type
from driverbench.events import BenchmarkObserver, LoggingObserver
from driverbench.exceptions import AllDriversFailedError, InputValidationError
from driverbench.logging_config import get_logger, log_performance
from driverbench.models import (
    ComparisonMetadata,
    ComparisonRecord,
    ComparisonResponse,
    DriverComparison,
    DriverComparisonResult,
)
from driverbench.queries import QueryCatalog, TestQuery
from driverbench.runner import BenchmarkRunner
from driverbench.schema import SchemaGuard

logger = get_logger(__name__)


def percentage_difference(value: float, baseline: float) -> float:
    """Relative difference of ``value`` against ``baseline`` in percent; positive is slower."""
    if baseline == 0:
        return 0.0
    return (value - baseline) / baseline * 100


def compute_comparisons(results: Sequence[DriverComparisonResult]) -> List[ComparisonRecord]:
    """Attach to every result its difference against each other result in the run."""
    records = []
    for index, result in enumerate(results):
        comparisons = tuple(
            DriverComparison(
                driver=other.driver,
                percentage_difference=percentage_difference(result.total_median, other.total_median),
            )
            for other_index, other in enumerate(results)
            if other_index != index
        )
        records.append(ComparisonRecord(
            driver=result.driver,
            results=result.results,
            total_median=result.total_median,
            total_mean=result.total_mean,
            comparisons=comparisons,
        ))
    return records


class ComparisonEngine:
    def __init__(self,
                 settings: BenchmarkSettings,
                 factory: DriverFactory | None = None,
                 catalog: QueryCatalog | None = None,
                 observer: BenchmarkObserver | None = None,
                 schema_guard: SchemaGuard | None = None):
        self.settings = settings
        self.factory = factory or DriverFactory(settings)
        self.catalog = catalog or QueryCatalog()
        self.observer = observer or LoggingObserver()
        self.schema_guard = schema_guard or SchemaGuard(self.observer)

    def resolve_sample_count(self, sample_count) -> int:
        """Apply the default, reject non-positive values and clamp to the maximum."""
        if sample_count is None:
            sample_count = self.settings.default_sample_count
        if isinstance(sample_count, bool):
            raise InputValidationError("sampleCount must be a positive integer")
        if isinstance(sample_count, str):
            try:
                sample_count = int(sample_count.strip())
            except ValueError:
                raise InputValidationError(f"sampleCount must be a positive integer, got {sample_count!r}") from None
        if not isinstance(sample_count, int):
            raise InputValidationError(f"sampleCount must be a positive integer, got {sample_count!r}")
        sample_count = min(sample_count, self.settings.max_sample_count)
        if sample_count <= 0:
            raise InputValidationError(f"sampleCount must be a positive integer, got {sample_count}")
        return sample_count

    def resolve_drivers(self, drivers: Optional[Iterable[str]]) -> List[DriverType]:
        if not drivers:
            return self.factory.driver_types
        return [parse_driver_type(driver) for driver in drivers]

    async def compare_drivers(self,
                              drivers: Sequence[DriverType],
                              queries: Sequence[TestQuery],
                              sample_count: int,
                              failures: Optional[List[Tuple[str, str]]] = None) -> List[DriverComparisonResult]:
        """Benchmark each driver in order, omitting drivers that fail.

        Each failure is appended to ``failures`` as ``(driver, message)`` when
        given, one entry per failed position; a driver requested twice can
        appear twice.
        """
        results = []
        for driver in drivers:
            self.observer.driver_started(driver.value)
            try:
                result = await self.benchmark_driver(driver, queries, sample_count)
            except Exception as e:
                self.observer.driver_failed(driver.value, e)
                if failures is not None:
                    failures.append((driver.value, str(e)))
                continue
            self.observer.driver_completed(result)
            results.append(result)
        return results

    async def benchmark_driver(self,
                               driver: DriverType,
                               queries: Sequence[TestQuery],
                               sample_count: int) -> DriverComparisonResult:
        handle = await self.factory.create(driver)
        try:
            await self.schema_guard.ensure(handle, queries)
            runner = BenchmarkRunner(handle,
                                     concurrency_cap=self.settings.concurrency_cap,
                                     observer=self.observer)
            query_results = []
            for query in queries:
                query_results.append(await runner.run(query, sample_count))
        finally:
            await handle.release()
        return DriverComparisonResult.from_results(driver.value, query_results)

    @log_performance(logger, "driver comparison")
    async def run(self,
                  drivers: Optional[Iterable[str]] = None,
                  queries: Optional[Iterable[str]] = None,
                  sample_count=None) -> ComparisonResponse:
        """
        Validate a comparison request, run it and attach pairwise comparisons.

        Args:
            drivers: Driver identifiers in run order; every known driver if empty.
            queries: Query names; the whole catalog if empty. Unknown names are
                ignored, and ``metadata.queries`` lists only the names that ran,
                not the names as requested.
            sample_count: Samples per query; defaults and clamping come from settings.

        Raises:
            InputValidationError: before any driver is touched.
            AllDriversFailedError: if no driver produced a result.
        """
        driver_types = self.resolve_drivers(drivers)
        count = self.resolve_sample_count(sample_count)
        selected = self.catalog.select(list(queries) if queries else None)

        logger.info("Comparing %d driver(s) over %d queries with %d samples each",
                    len(driver_types), len(selected), count)
        failures: List[Tuple[str, str]] = []
        results = await self.compare_drivers(driver_types, selected, count, failures)
        if not results:
            raise AllDriversFailedError(failures)

        return ComparisonResponse(
            results=compute_comparisons(results),
            metadata=ComparisonMetadata(
                sample_count=count,
                queries=[query.name for query in selected],
                timestamp=datetime.now(timezone.utc),
            ),
        )
