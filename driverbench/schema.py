"""
Check-and-provision step that runs before any timing.

The benchmark queries read ``users`` and ``posts``. Before a driver is
measured the guard checks those tables; if a check fails it creates the
schema and inserts a small fixed data set. Both steps are idempotent, so
running them against an already provisioned database changes nothing.
"""
from enum import Enum
from typing import Iterable

from driverbench.drivers.base import DriverHandle
from driverbench.events import BenchmarkObserver, LoggingObserver
from driverbench.exceptions import ProvisioningError
from driverbench.logging_config import get_logger
from driverbench.queries import Dialect, TestQuery

logger = get_logger(__name__)

SEED_USERS = (
    ("alice@example.com", "Alice Johnson"),
    ("bob@example.com", "Bob Smith"),
    ("charlie@example.com", "Charlie Brown"),
    ("diana@example.com", "Diana Prince"),
    ("edward@example.com", "Edward Norton"),
)

SEED_POSTS = (
    ("Getting Started with Next.js", "Next.js is a powerful React framework..."),
    ("Understanding TypeScript", "TypeScript adds type safety to JavaScript..."),
    ("Database Performance Tips", "Optimizing database queries is crucial..."),
)

POSTGRES_DDL = (
    """
    CREATE TABLE IF NOT EXISTS users (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      email VARCHAR(255) UNIQUE NOT NULL,
      name VARCHAR(255),
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      user_id UUID REFERENCES users(id) ON DELETE CASCADE,
      title VARCHAR(255) NOT NULL,
      content TEXT,
      view_count INTEGER DEFAULT 0,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      UNIQUE (user_id, title)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS benchmark_results (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      driver VARCHAR(50) NOT NULL,
      query_name VARCHAR(100) NOT NULL,
      execution_time_ms DECIMAL(10, 3) NOT NULL,
      sample_count INTEGER NOT NULL,
      median_ms DECIMAL(10, 3),
      p95_ms DECIMAL(10, 3),
      p99_ms DECIMAL(10, 3),
      min_ms DECIMAL(10, 3),
      max_ms DECIMAL(10, 3),
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_benchmark_results_driver ON benchmark_results(driver)",
    "CREATE INDEX IF NOT EXISTS idx_benchmark_results_created_at ON benchmark_results(created_at DESC)",
)

# MySQL has no CREATE INDEX IF NOT EXISTS and PlanetScale rejects foreign keys,
# so indexes are declared inline and posts.user_id is unconstrained.
MYSQL_DDL = (
    """
    CREATE TABLE IF NOT EXISTS users (
      id CHAR(36) PRIMARY KEY DEFAULT (UUID()),
      email VARCHAR(255) NOT NULL UNIQUE,
      name VARCHAR(255),
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
      id CHAR(36) PRIMARY KEY DEFAULT (UUID()),
      user_id CHAR(36) NOT NULL,
      title VARCHAR(255) NOT NULL,
      content TEXT,
      view_count INT DEFAULT 0,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
      UNIQUE KEY uq_posts_user_title (user_id, title),
      KEY idx_posts_user_id (user_id),
      KEY idx_posts_created_at (created_at)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS benchmark_results (
      id CHAR(36) PRIMARY KEY DEFAULT (UUID()),
      driver VARCHAR(50) NOT NULL,
      query_name VARCHAR(100) NOT NULL,
      execution_time_ms DECIMAL(10, 3) NOT NULL,
      sample_count INT NOT NULL,
      median_ms DECIMAL(10, 3),
      p95_ms DECIMAL(10, 3),
      p99_ms DECIMAL(10, 3),
      min_ms DECIMAL(10, 3),
      max_ms DECIMAL(10, 3),
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      KEY idx_benchmark_results_driver (driver),
      KEY idx_benchmark_results_created_at (created_at)
    )
    """,
)


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def seed_statements(dialect: Dialect) -> tuple[str, str]:
    """Insert-or-ignore statements for the fixed seed rows.

    Users are keyed by ``email`` and posts by ``(user_id, title)``.
    """
    user_rows = ",\n".join(f"({_literal(email)}, {_literal(name)})" for email, name in SEED_USERS)
    post_rows = "\nUNION ALL ".join(
        f"SELECT {_literal(title)} AS title, {_literal(content)} AS content"
        for title, content in SEED_POSTS
    )
    emails = ", ".join(_literal(email) for email, _ in SEED_USERS)
    select_posts = (
        "SELECT u.id, s.title, s.content\n"
        f"FROM users u CROSS JOIN ({post_rows}) s\n"
        f"WHERE u.email IN ({emails})"
    )

    if dialect == Dialect.MYSQL:
        return (
            f"INSERT IGNORE INTO users (email, name) VALUES\n{user_rows}",
            f"INSERT IGNORE INTO posts (user_id, title, content)\n{select_posts}",
        )
    return (
        f"INSERT INTO users (email, name) VALUES\n{user_rows}\nON CONFLICT (email) DO NOTHING",
        f"INSERT INTO posts (user_id, title, content)\n{select_posts}\nON CONFLICT (user_id, title) DO NOTHING",
    )


def ddl_statements(dialect: Dialect) -> tuple[str, ...]:
    return MYSQL_DDL if dialect == Dialect.MYSQL else POSTGRES_DDL


class SchemaStatus(str, Enum):
    SKIPPED = "skipped"
    PRESENT = "present"
    PROVISIONED = "provisioned"
    FAILED = "failed"


class SchemaGuard:
    """Make sure the tables a query set reads exist before timing starts."""

    def __init__(self, observer: BenchmarkObserver | None = None):
        self.observer = observer or LoggingObserver()

    async def ensure(self, handle: DriverHandle, queries: Iterable[TestQuery]) -> SchemaStatus:
        """
        Check the tables the queries read and provision them if missing.

        Constant-only query sets skip the check entirely. Provisioning errors
        are reported and swallowed; a query that then hits a missing table
        fails on its own during sampling.
        """
        tables = sorted(set().union(*(query.tables for query in queries)))
        if not tables:
            status = SchemaStatus.SKIPPED
        elif await self._tables_present(handle, tables):
            status = SchemaStatus.PRESENT
        else:
            try:
                await self.provision(handle)
                status = SchemaStatus.PROVISIONED
            except ProvisioningError as e:
                self.observer.schema_provisioning_failed(handle.driver.value, e)
                status = SchemaStatus.FAILED

        self.observer.schema_checked(handle.driver.value, status)
        return status

    async def _tables_present(self, handle: DriverHandle, tables: list[str]) -> bool:
        for table in tables:
            try:
                await handle.execute(f"SELECT 1 FROM {table} LIMIT 1")
            except Exception as e:
                logger.info("Check of table %s through %s failed: %s", table, handle.driver.value, e)
                return False
        return True

    async def provision(self, handle: DriverHandle) -> None:
        """Create the benchmark tables and insert the seed rows.

        Raises:
            ProvisioningError: if any statement fails.
        """
        statements = ddl_statements(handle.dialect) + seed_statements(handle.dialect)
        for statement in statements:
            try:
                await handle.execute(statement)
            except Exception as e:
                raise ProvisioningError(
                    f"Provisioning through {handle.driver.value} failed: {e}"
                ) from e
        self.observer.schema_provisioned(handle.driver.value)
