"""Unit tests for environment-driven settings."""

from __future__ import annotations

import pytest

from meudads_db.config import Settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATABASE_URL", "POSTGRES_URL", "EMERGENCY_ACCESS", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.database_url is None
        assert settings.emergency_access is False
        assert settings.emergency_admin_email == "admin@meudads.com.br"
        assert settings.emergency_admin_password_hash is None
        assert settings.graph_api_ver == "v21.0"
        assert settings.log_format == "console"

    def test_database_url_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://neon/db")
        assert Settings(_env_file=None).database_url == "postgresql://neon/db"

    def test_postgres_url_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTGRES_URL", "postgresql://vercel/db")
        assert Settings(_env_file=None).database_url == "postgresql://vercel/db"

    def test_emergency_access_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMERGENCY_ACCESS", "true")
        assert Settings(_env_file=None).emergency_access is True

    def test_invalid_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError):
            Settings(_env_file=None)
