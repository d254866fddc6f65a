from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from driverbench.comparison import ComparisonEngine
from driverbench.config import BenchmarkSettings
from driverbench.drivers.base import DriverType
from driverbench.exceptions import (
    AllDriversFailedError,
    ConfigurationError,
    InputValidationError,
    ProvisioningError,
)
from driverbench.logging_config import get_logger
from driverbench.models import CompareRequest, ComparisonResponse, ErrorResponse, MigrateRequest
from driverbench.sink import PostgresResultSink, ResultSink, rows_from_results

logger = get_logger(__name__)


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code,
                        content=ErrorResponse(error=error, details=details).model_dump())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BenchmarkRouter(APIRouter):
    """
    HTTP surface of the comparison engine.

    ``/benchmark/compare`` runs a comparison, ``/benchmark/migrate`` creates
    and seeds the benchmark schema, ``/health`` checks the database.
    """

    def __init__(self,
                 settings: BenchmarkSettings | None = None,
                 engine: ComparisonEngine | None = None,
                 sink: ResultSink | None = None,
                 health_driver: DriverType = DriverType.ASYNCPG_DIRECT,
                 **kwargs):
        super().__init__(**kwargs)
        self.settings = settings or BenchmarkSettings()
        self.engine = engine or ComparisonEngine(self.settings)
        if sink is None and self.settings.database_url:
            sink = PostgresResultSink(self.settings.database_url)
        self.sink = sink
        self.health_driver = health_driver

        error_responses = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
        self.add_api_route(
            "/benchmark/compare",
            self.compare_get,
            methods=["GET"],
            response_model=ComparisonResponse,
            responses=error_responses,
            summary="Compare drivers",
            description="Benchmarks the requested drivers over the query catalog.",
        )
        self.add_api_route(
            "/benchmark/compare",
            self.compare_post,
            methods=["POST"],
            response_model=ComparisonResponse,
            responses=error_responses,
            summary="Compare drivers",
            description="Benchmarks the requested drivers over the query catalog.",
        )
        self.add_api_route(
            "/benchmark/migrate",
            self.migrate,
            methods=["POST"],
            responses=error_responses,
            summary="Provision the benchmark schema",
            description="Creates the benchmark tables if missing and inserts the seed rows.",
        )
        self.add_api_route(
            "/health",
            self.health,
            methods=["GET"],
            summary="Database health check",
        )

    async def compare_get(self,
                          drivers: Optional[List[str]] = Query(default=None),
                          queries: Optional[List[str]] = Query(default=None),
                          sample_count: Optional[str] = Query(default=None, alias="sampleCount"),
                          store: bool = False):
        request = CompareRequest(drivers=drivers, queries=queries, sample_count=sample_count, store=store)
        return await self.compare(request)

    async def compare_post(self, request: CompareRequest | None = None):
        return await self.compare(request or CompareRequest())

    async def compare(self, request: CompareRequest):
        try:
            response = await self.engine.run(request.drivers, request.queries, request.sample_count)
        except InputValidationError as e:
            return _error(400, "Invalid benchmark request", str(e))
        except AllDriversFailedError as e:
            logger.error("Benchmark comparison error: %s", e)
            return _error(500, "Failed to run benchmark comparison", e.details or str(e))

        if request.store:
            await self._store(response)
        return response

    async def _store(self, response: ComparisonResponse) -> None:
        if self.sink is None:
            logger.warning("Result storage requested but no result sink is configured")
            return
        try:
            await self.sink.insert(rows_from_results(response.results))
        except Exception as e:
            logger.error("Failed to store benchmark results: %s", e, exc_info=True)

    async def migrate(self, request: MigrateRequest | None = None):
        driver = (request.driver if request else None) or DriverType.ASYNCPG.value
        factory = self.engine.factory
        try:
            handle = await factory.create(driver)
        except (ConfigurationError, InputValidationError) as e:
            return _error(400, "Failed to run migration", str(e))
        except Exception as e:
            logger.error("Migration connection error: %s", e)
            return _error(500, "Failed to run migration", str(e))

        try:
            await self.engine.schema_guard.provision(handle)
        except ProvisioningError as e:
            logger.error("Migration error: %s", e)
            return _error(500, "Failed to run migration", str(e))
        finally:
            await handle.release()

        return {"success": True, "message": "Database migration completed successfully"}

    async def health(self):
        handle = None
        try:
            handle = await self.engine.factory.create(self.health_driver)
            await handle.execute("SELECT 1 AS healthy")
        except Exception as e:
            return JSONResponse(status_code=503, content={
                "status": "unhealthy",
                "error": str(e),
                "timestamp": _now(),
            })
        finally:
            if handle is not None:
                await handle.release()

        return {"status": "healthy", "database": True, "timestamp": _now()}
