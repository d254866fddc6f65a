"""
End-to-end comparison against a live PostgreSQL database.

Skipped unless TEST_DATABASE_URL points at a database the tests may write to.
"""

import os

import pytest

from driverbench.comparison import ComparisonEngine
from driverbench.config import BenchmarkSettings
from driverbench.drivers.factory import DriverFactory
from driverbench.schema import SchemaGuard

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL is not set"),
]


@pytest.fixture
def live_settings():
    return BenchmarkSettings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        direct_database_url=TEST_DATABASE_URL,
        planetscale_database_url=None,
        planetscale_database_url_unpooled=None,
    )


@pytest.mark.asyncio
async def test_compare_asyncpg_drivers(live_settings, observer):
    """Both asyncpg drivers run every catalog query against a live database."""
    engine = ComparisonEngine(live_settings, observer=observer)

    response = await engine.run(["asyncpg", "asyncpg-direct"], None, 3)

    assert [record.driver for record in response.results] == ["asyncpg", "asyncpg-direct"]
    for record in response.results:
        assert len(record.results) == len(engine.catalog)
        for result in record.results:
            assert len(result.times) == 3
            assert all(t > 0 for t in result.times)
        assert len(record.comparisons) == 1


@pytest.mark.asyncio
async def test_provisioning_is_idempotent(live_settings, observer):
    """Provisioning twice leaves one copy of the seed rows."""
    factory = DriverFactory(live_settings)
    guard = SchemaGuard(observer)

    async with await factory.create("asyncpg") as handle:
        await guard.provision(handle)
        await guard.provision(handle)
        rows = await handle.execute("SELECT COUNT(*) AS n FROM users WHERE email LIKE '%@example.com'")

    assert rows[0]["n"] >= 5
    assert observer.names().count("schema_provisioned") == 2


@pytest.mark.asyncio
async def test_unconfigured_planetscale_is_excluded(live_settings, observer):
    """A driver without credentials is dropped while the others run."""
    engine = ComparisonEngine(live_settings, observer=observer)

    response = await engine.run(["planetscale", "asyncpg"], ["simple"], 2)

    assert [record.driver for record in response.results] == ["asyncpg"]
    assert "driver_failed" in observer.names()
