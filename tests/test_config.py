"""Tests for application settings."""

from config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.related_decisions_limit == 5
        assert settings.read_cache_enabled is True
        assert settings.algorithm == "HS256"

    def test_postgres_url_gets_asyncpg_driver(self):
        settings = Settings(_env_file=None, database_url="postgresql://u:p@db:5432/decisions")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/decisions"

    def test_repr_masks_credentials(self):
        settings = Settings(
            _env_file=None,
            database_url="postgresql://user:hunter2@db:5432/decisions",
            redis_url="redis://:s3cret@cache:6379",
            secret_key="jwt-secret",
        )

        text = repr(settings)

        assert "hunter2" not in text
        assert "s3cret" not in text
        assert "jwt-secret" not in text
        assert ":***@" in text

    def test_secret_key_accessor(self):
        settings = Settings(_env_file=None, secret_key="jwt-secret")
        assert settings.get_secret_key() == "jwt-secret"
        assert "jwt-secret" not in str(settings.secret_key)
