"""
HTTP query drivers.

Both backends accept one SQL statement per POST and answer with the complete
result as JSON, so a sample covers the request, the server round trip and
reading the whole response body.
"""
from typing import Any

import httpx

from driverbench.drivers.base import DriverHandle, DriverType
from driverbench.exceptions import ConfigurationError, ExecutionError
from driverbench.logging_config import get_logger
from driverbench.queries import Dialect

logger = get_logger(__name__)


class HttpHandle(DriverHandle):
    """Shared client lifecycle for HTTP drivers.

    ``max_concurrency`` bounds the httpx connection pool. ``transport`` lets
    callers swap the network layer (e.g. ``httpx.MockTransport``).
    """

    def __init__(self,
                 driver: DriverType,
                 max_concurrency: int,
                 connect_timeout: float = 10.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(driver, max_concurrency)
        self.connect_timeout = connect_timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    def _client_kwargs(self) -> dict[str, Any]:
        return {}

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(
            # no read timeout: a slow query is a measurement, not a failure
            timeout=httpx.Timeout(None, connect=self.connect_timeout),
            limits=httpx.Limits(
                max_connections=self.max_concurrency,
                max_keepalive_connections=self.max_concurrency,
            ),
            transport=self.transport,
            **self._client_kwargs(),
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{self!r} is not connected")
        return self._client

    async def _close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _parse_dsn(dsn: str, driver: DriverType) -> httpx.URL:
    try:
        url = httpx.URL(dsn)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Connection string for {driver.value} is invalid: {e}") from e
    if not url.host:
        raise ConfigurationError(f"Connection string for {driver.value} has no host")
    return url


class NeonHttpHandle(HttpHandle):
    """PostgreSQL through Neon's SQL-over-HTTP endpoint.

    The connection string travels in the ``Neon-Connection-String`` header;
    the endpoint defaults to ``https://<host>/sql``.
    """

    def __init__(self,
                 dsn: str,
                 max_concurrency: int,
                 endpoint: str | None = None,
                 driver: DriverType = DriverType.NEON_HTTP,
                 **kwargs):
        super().__init__(driver, max_concurrency, **kwargs)
        url = _parse_dsn(dsn, driver)
        self.dsn = dsn
        self.endpoint = endpoint or f"https://{url.host}/sql"

    def _client_kwargs(self) -> dict[str, Any]:
        return {
            "headers": {
                "Neon-Connection-String": self.dsn,
                "Neon-Raw-Text-Output": "true",
                "Neon-Array-Mode": "true",
            }
        }

    async def execute(self, statement: str):
        response = await self.client.post(self.endpoint, json={"query": statement, "params": []})
        if response.is_error:
            message = _error_message(response)
            if message is not None:
                raise ExecutionError(f"Neon HTTP query failed ({response.status_code}): {message}",
                                     driver=self.driver.value)
            response.raise_for_status()
        return response.json()


class PlanetScaleHttpHandle(HttpHandle):
    """MySQL through PlanetScale's HTTP API (``psdb.v1alpha1.Database/Execute``).

    Credentials from the connection string are sent as basic auth. Queries
    run without a session, so concurrent samples never share server state.
    """

    dialect = Dialect.MYSQL

    def __init__(self,
                 dsn: str,
                 max_concurrency: int,
                 driver: DriverType = DriverType.PLANETSCALE,
                 **kwargs):
        super().__init__(driver, max_concurrency, **kwargs)
        url = _parse_dsn(dsn, driver)
        self.endpoint = f"https://{url.host}/psdb.v1alpha1.Database/Execute"
        self.username = url.username
        self.password = url.password

    def _client_kwargs(self) -> dict[str, Any]:
        return {"auth": httpx.BasicAuth(self.username, self.password)}

    async def execute(self, statement: str):
        response = await self.client.post(self.endpoint, json={"query": statement, "session": None})
        response.raise_for_status()
        body = response.json()
        error = body.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ExecutionError(f"PlanetScale query failed: {message}", driver=self.driver.value)
        return body.get("result")


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None
