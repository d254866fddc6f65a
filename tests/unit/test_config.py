"""
Unit tests for driverbench.config.
"""

from driverbench.config import BenchmarkSettings


class TestBenchmarkSettings:
    def test_defaults(self, monkeypatch):
        """Test default settings."""
        for variable in ("DATABASE_URL", "DIRECT_DATABASE_URL",
                         "PLANETSCALE_DATABASE_URL", "PLANETSCALE_DATABASE_URL_UNPOOLED"):
            monkeypatch.delenv(variable, raising=False)

        settings = BenchmarkSettings(_env_file=None)

        assert settings.database_url is None
        assert settings.default_sample_count == 10
        assert settings.max_sample_count == 100
        assert settings.concurrency_cap == 8

    def test_reads_deployment_variable_names(self, monkeypatch):
        """Test the environment variable names."""
        monkeypatch.setenv("DATABASE_URL", "postgres://a@pooler/db")
        monkeypatch.setenv("DIRECT_DATABASE_URL", "postgres://a@direct/db")
        monkeypatch.setenv("PLANETSCALE_DATABASE_URL_UNPOOLED", "mysql://u:p@ps/db")
        monkeypatch.setenv("MAX_SAMPLE_COUNT", "50")

        settings = BenchmarkSettings(_env_file=None)

        assert settings.database_url == "postgres://a@pooler/db"
        assert settings.direct_database_url == "postgres://a@direct/db"
        assert settings.planetscale_database_url_unpooled == "mysql://u:p@ps/db"
        assert settings.max_sample_count == 50

    def test_keyword_arguments_win_over_environment(self, monkeypatch):
        """Test that keyword arguments override the environment."""
        monkeypatch.setenv("DATABASE_URL", "postgres://from-env/db")

        settings = BenchmarkSettings(_env_file=None, database_url="postgres://explicit/db")

        assert settings.database_url == "postgres://explicit/db"
