from typing import Callable, Mapping

from driverbench.config import BenchmarkSettings
from driverbench.drivers.asyncpg_driver import AsyncpgHandle
from driverbench.drivers.base import DriverHandle, DriverType
from driverbench.drivers.http_driver import NeonHttpHandle, PlanetScaleHttpHandle
from driverbench.exceptions import ConfigurationError, InputValidationError
from driverbench.logging_config import get_logger

logger = get_logger(__name__)

POOLED_CONCURRENCY = 8
UNPOOLED_CONCURRENCY = 1

DriverBuilder = Callable[[BenchmarkSettings], DriverHandle]


def _require(value: str | None, variable: str, driver: DriverType) -> str:
    if not value:
        raise ConfigurationError(f"{variable} environment variable is required for {driver.value} driver")
    return value


def build_asyncpg(settings: BenchmarkSettings) -> DriverHandle:
    dsn = _require(settings.database_url, "DATABASE_URL", DriverType.ASYNCPG)
    return AsyncpgHandle(DriverType.ASYNCPG, dsn, POOLED_CONCURRENCY,
                         connect_timeout=settings.connect_timeout)


def build_asyncpg_direct(settings: BenchmarkSettings) -> DriverHandle:
    dsn = _require(settings.direct_database_url or settings.database_url,
                   "DIRECT_DATABASE_URL or DATABASE_URL", DriverType.ASYNCPG_DIRECT)
    return AsyncpgHandle(DriverType.ASYNCPG_DIRECT, dsn, UNPOOLED_CONCURRENCY,
                         connect_timeout=settings.connect_timeout)


def build_neon_http(settings: BenchmarkSettings) -> DriverHandle:
    dsn = _require(settings.database_url, "DATABASE_URL", DriverType.NEON_HTTP)
    return NeonHttpHandle(dsn, POOLED_CONCURRENCY, endpoint=settings.neon_http_endpoint,
                          connect_timeout=settings.connect_timeout)


def build_planetscale(settings: BenchmarkSettings) -> DriverHandle:
    dsn = _require(settings.planetscale_database_url, "PLANETSCALE_DATABASE_URL", DriverType.PLANETSCALE)
    return PlanetScaleHttpHandle(dsn, POOLED_CONCURRENCY, driver=DriverType.PLANETSCALE,
                                 connect_timeout=settings.connect_timeout)


def build_planetscale_unpooled(settings: BenchmarkSettings) -> DriverHandle:
    dsn = _require(settings.planetscale_database_url_unpooled, "PLANETSCALE_DATABASE_URL_UNPOOLED",
                   DriverType.PLANETSCALE_UNPOOLED)
    return PlanetScaleHttpHandle(dsn, UNPOOLED_CONCURRENCY, driver=DriverType.PLANETSCALE_UNPOOLED,
                                 connect_timeout=settings.connect_timeout)


DRIVER_BUILDERS: dict[DriverType, DriverBuilder] = {
    DriverType.ASYNCPG: build_asyncpg,
    DriverType.ASYNCPG_DIRECT: build_asyncpg_direct,
    DriverType.NEON_HTTP: build_neon_http,
    DriverType.PLANETSCALE: build_planetscale,
    DriverType.PLANETSCALE_UNPOOLED: build_planetscale_unpooled,
}


def parse_driver_type(value: str | DriverType) -> DriverType:
    """Resolve a public driver identifier, rejecting unknown ones."""
    try:
        return DriverType(value)
    except ValueError:
        known = ", ".join(d.value for d in DriverType)
        raise InputValidationError(f"Unknown driver: {value!r} (known drivers: {known})") from None


class DriverFactory:
    """
    Builds independent driver handles from explicit settings.

    Each call to ``create`` returns a new, connected handle; nothing is
    shared between handles. The caller owns the handle and must release it.
    """

    def __init__(self,
                 settings: BenchmarkSettings,
                 builders: Mapping[DriverType, DriverBuilder] | None = None):
        self.settings = settings
        self.builders = dict(DRIVER_BUILDERS if builders is None else builders)

    @property
    def driver_types(self) -> list[DriverType]:
        return list(self.builders)

    def build(self, driver: DriverType | str) -> DriverHandle:
        """Construct a handle without connecting it."""
        driver = parse_driver_type(driver)
        builder = self.builders.get(driver)
        if builder is None:
            raise InputValidationError(f"Driver {driver.value} is not available")
        return builder(self.settings)

    async def create(self, driver: DriverType | str) -> DriverHandle:
        handle = self.build(driver)
        try:
            await handle.connect()
        except BaseException:
            await handle.release()
            raise
        logger.debug("Connected %r", handle)
        return handle
