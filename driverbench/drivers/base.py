from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from driverbench.queries import Dialect


class DriverType(str, Enum):
    """Client implementations that can be benchmarked."""
    ASYNCPG = "asyncpg"
    ASYNCPG_DIRECT = "asyncpg-direct"
    NEON_HTTP = "neon-http"
    PLANETSCALE = "planetscale"
    PLANETSCALE_UNPOOLED = "planetscale-unpooled"


class DriverHandle(ABC):
    """
    One live, exclusively owned client for a single driver type.

    ``execute`` may be awaited concurrently by up to ``max_concurrency``
    workers; how those calls are multiplexed onto connections is the
    underlying client's business. ``release`` closes every connection and is
    safe to call more than once.
    """

    dialect: Dialect = Dialect.POSTGRES

    def __init__(self, driver: DriverType, max_concurrency: int):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.driver = driver
        self.max_concurrency = max_concurrency
        self._released = False

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying pool or client."""

    @abstractmethod
    async def execute(self, statement: str) -> Any:
        """Run one statement and return once the full result is received."""

    @abstractmethod
    async def _close(self) -> None:
        """Close the underlying pool or client."""

    @property
    def released(self) -> bool:
        return self._released

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        await self._close()

    async def __aenter__(self) -> "DriverHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} driver={self.driver.value} max_concurrency={self.max_concurrency}>"
