"""
The fixed benchmark query catalog.

Every query is written once in PostgreSQL and, where a backend needs different
syntax for the same logical result, overridden per dialect. The relations a
query touches are extracted from the PostgreSQL text with pglast so the schema
guard can tell constant queries from queries that need seeded data.
"""

from enum import Enum
from typing import Iterable, Optional

from pglast import parse_sql
from pglast.visitors import Visitor
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Dialect(str, Enum):
    """SQL dialect spoken by a driver's backend."""
    POSTGRES = "postgres"
    MYSQL = "mysql"


class _RelationCollector(Visitor):
    def __init__(self):
        super().__init__()
        self.relations: set[str] = set()

    def visit_RangeVar(self, ancestors, node):
        self.relations.add(node.relname)


def referenced_tables(sql: str) -> frozenset[str]:
    """Return the names of the relations referenced by a PostgreSQL statement."""
    collector = _RelationCollector()
    collector(parse_sql(sql))
    return frozenset(collector.relations)


class TestQuery(BaseModel):
    """A named benchmark query.

    ``sql`` is the PostgreSQL text; ``dialect_sql`` holds overrides for
    backends whose syntax differs.
    """

    # not a pytest test class despite the name
    __test__ = False

    model_config = ConfigDict(frozen=True)

    name: str
    sql: str
    dialect_sql: dict[Dialect, str] = Field(default_factory=dict)
    tables: frozenset[str] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _collect_tables(cls, data):
        if isinstance(data, dict) and not data.get("tables") and data.get("sql"):
            data = {**data, "tables": referenced_tables(data["sql"])}
        return data

    def statement_for(self, dialect: Dialect = Dialect.POSTGRES) -> str:
        return self.dialect_sql.get(dialect, self.sql)

    @property
    def needs_data(self) -> bool:
        return bool(self.tables)


STANDARD_QUERIES: tuple[TestQuery, ...] = (
    TestQuery(
        name="simple",
        sql="SELECT 1 AS result",
    ),
    TestQuery(
        name="timestamp",
        sql="SELECT NOW() AS current_time",
    ),
    TestQuery(
        name="countUsers",
        sql="SELECT COUNT(*) AS count FROM users",
    ),
    TestQuery(
        name="recentPosts",
        sql="""
            SELECT id, title, created_at
            FROM posts
            ORDER BY created_at DESC
            LIMIT 10
        """,
    ),
    TestQuery(
        name="complexJoin",
        sql="""
            SELECT
              u.id,
              u.name,
              u.email,
              COUNT(p.id) AS post_count
            FROM users u
            LEFT JOIN posts p ON u.id = p.user_id
            GROUP BY u.id, u.name, u.email
            HAVING COUNT(p.id) > 0
            ORDER BY post_count DESC
            LIMIT 5
        """,
    ),
    TestQuery(
        name="aggregation",
        sql="""
            SELECT
              DATE_TRUNC('day', created_at) AS day,
              COUNT(*) AS post_count
            FROM posts
            WHERE created_at >= NOW() - INTERVAL '30 days'
            GROUP BY day
            ORDER BY day DESC
        """,
        dialect_sql={
            Dialect.MYSQL: """
                SELECT
                  DATE(created_at) AS day,
                  COUNT(*) AS post_count
                FROM posts
                WHERE created_at >= DATE_SUB(NOW(), INTERVAL 30 DAY)
                GROUP BY day
                ORDER BY day DESC
            """,
        },
    ),
)


class QueryCatalog:
    """Registry of benchmark queries keyed by name, in catalog order."""

    def __init__(self, queries: Iterable[TestQuery] = STANDARD_QUERIES):
        self._queries: dict[str, TestQuery] = {}
        for query in queries:
            if query.name in self._queries:
                raise ValueError(f"Duplicate query name: {query.name}")
            self._queries[query.name] = query

    def __contains__(self, name: str) -> bool:
        return name in self._queries

    def __len__(self) -> int:
        return len(self._queries)

    def get(self, name: str) -> Optional[TestQuery]:
        return self._queries.get(name)

    def names(self) -> list[str]:
        return list(self._queries)

    def select(self, names: Optional[Iterable[str]] = None) -> list[TestQuery]:
        """Resolve requested names to queries.

        Unknown names are dropped without error and the caller's order is
        kept. ``None`` selects the whole catalog.
        """
        if names is None:
            return list(self._queries.values())
        return [self._queries[name] for name in names if name in self._queries]
