"""
Result and request models.

Attributes are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from driverbench.stats import calculate_stats


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PerformanceTestResult(CamelModel):
    """Timings and statistics for one (driver, query) pair."""

    # not a pytest test class despite the name
    __test__ = False

    query_name: str
    times: tuple[float, ...] = Field(description="Per-iteration durations in ms, in iteration order.")
    sample_count: int
    median: float
    mean: float
    p95: float
    p99: float
    min: float
    max: float

    @classmethod
    def from_times(cls, query_name: str, times: List[float]) -> "PerformanceTestResult":
        stats = calculate_stats(times)
        return cls(
            query_name=query_name,
            times=tuple(times),
            sample_count=len(times),
            **stats._asdict(),
        )


class DriverComparisonResult(CamelModel):
    driver: str
    results: tuple[PerformanceTestResult, ...]
    total_median: float
    total_mean: float

    @classmethod
    def from_results(cls, driver: str, results: List[PerformanceTestResult]) -> "DriverComparisonResult":
        """Totals are the unweighted mean of per-query medians and means."""
        if results:
            total_median = sum(r.median for r in results) / len(results)
            total_mean = sum(r.mean for r in results) / len(results)
        else:
            total_median = total_mean = 0.0
        return cls(
            driver=driver,
            results=tuple(results),
            total_median=total_median,
            total_mean=total_mean,
        )


class DriverComparison(CamelModel):
    driver: str
    percentage_difference: float


class ComparisonRecord(DriverComparisonResult):
    comparisons: tuple[DriverComparison, ...] = ()


class ComparisonMetadata(CamelModel):
    sample_count: int
    queries: List[str]
    timestamp: datetime


class ComparisonResponse(CamelModel):
    results: List[ComparisonRecord]
    metadata: ComparisonMetadata


class CompareRequest(CamelModel):
    """
    Body of a comparison request.

    ``drivers`` and ``queries`` may be lists or comma-delimited strings.
    Missing values fall back to every known driver, the whole catalog and the
    configured default sample count.
    """

    drivers: Optional[List[str]] = Field(default=None, examples=[["asyncpg", "neon-http"]])
    queries: Optional[List[str]] = Field(default=None, examples=[["simple", "countUsers"]])
    # validated by ComparisonEngine.resolve_sample_count
    sample_count: Any = Field(default=None, examples=[10])
    store: bool = Field(default=False, description="Persist results to the result sink.")

    @field_validator("drivers", "queries", mode="before")
    @classmethod
    def split_delimited(cls, value: Union[str, List[str], None]) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        items = [part.strip() for item in value for part in str(item).split(",")]
        items = [item for item in items if item]
        return items or None


class MigrateRequest(CamelModel):
    driver: Optional[str] = None


class BenchmarkResultRow(CamelModel):
    """One row for the result sink."""

    driver: str
    query_name: str
    mean_ms: float
    sample_count: int
    median_ms: float
    p95_ms: float
    p99_ms: float
    min_ms: float
    max_ms: float


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
