from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BenchmarkSettings(BaseSettings):
    """Connection strings and run limits for driverbench.

    Values come from the environment using the variable names of the
    deployment (``DATABASE_URL``, ``DIRECT_DATABASE_URL``, ...), or from
    keyword arguments. The engine never reads the environment itself; build
    one settings object and hand it to the factory, engine and router.
    """

    database_url: str | None = Field(
        default=None, description="Pooled PostgreSQL connection string."
    )
    direct_database_url: str | None = Field(
        default=None,
        description="Direct (unpooled) PostgreSQL connection string. Falls back to database_url.",
    )
    planetscale_database_url: str | None = Field(
        default=None, description="PlanetScale connection string for the pooled HTTP driver."
    )
    planetscale_database_url_unpooled: str | None = Field(
        default=None, description="PlanetScale connection string for the unpooled HTTP driver."
    )
    neon_http_endpoint: str | None = Field(
        default=None,
        description="Override for the Neon SQL-over-HTTP endpoint. Defaults to https://<host>/sql.",
    )

    default_sample_count: int = 10
    max_sample_count: int = 100
    concurrency_cap: int = 8
    connect_timeout: float = 10.0

    server_host: str = "0.0.0.0"
    server_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
