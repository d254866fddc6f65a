import asyncio

import asyncpg

from driverbench.drivers.base import DriverHandle, DriverType
from driverbench.logging_config import get_logger

logger = get_logger(__name__)


class AsyncpgHandle(DriverHandle):
    """
    PostgreSQL over asyncpg's binary socket protocol.

    Backed by an asyncpg pool whose ``max_size`` is the handle's concurrency;
    a size of one models an unpooled direct connection, since a single
    asyncpg connection cannot run overlapping queries and the pool queues
    acquisitions instead.
    """

    def __init__(self,
                 driver: DriverType,
                 dsn: str,
                 max_concurrency: int,
                 connect_timeout: float = 10.0,
                 **pool_kwargs):
        super().__init__(driver, max_concurrency)
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        self.pool_kwargs = pool_kwargs
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        logger.debug("Opening asyncpg pool for %s (max_size=%d)", self.driver.value, self.max_concurrency)
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=1,
            max_size=self.max_concurrency,
            timeout=self.connect_timeout,
            **self.pool_kwargs,
        )

    async def execute(self, statement: str):
        if self._pool is None:
            raise RuntimeError(f"{self!r} is not connected")
        async with self._pool.acquire() as conn:
            return await conn.fetch(statement)

    async def _close(self) -> None:
        if self._pool is not None:
            await asyncio.wait_for(self._pool.close(), timeout=10)
            self._pool = None
