"""Unit tests for the meudads-db command line."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from meudads_db.cli import app
from meudads_db.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("DATABASE_URL", "POSTGRES_URL", "EMERGENCY_ACCESS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def source_db(tmp_path: Path) -> Path:
    path = tmp_path / "edge.db"
    with sqlite3.connect(path) as conn:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, is_active BOOLEAN)")
        conn.executemany(
            "INSERT INTO users (email, is_active) VALUES (?, ?)",
            [("a@example.com", 1), ("b@example.com", 0)],
        )
    return path


class TestRewriteCommand:
    def test_prints_postgres_sql(self) -> None:
        result = runner.invoke(app, ["rewrite", "INSERT OR IGNORE INTO roles (name) VALUES (?)"])
        assert result.exit_code == 0
        assert "INSERT INTO roles (name) VALUES (?) ON CONFLICT DO NOTHING;" in result.output


class TestMigrateCommand:
    def test_applies_then_reports_nothing_pending(self, tmp_path: Path) -> None:
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "001_init.sql").write_text(
            "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, email TEXT);",
            encoding="utf-8",
        )
        url = f"sqlite:///{tmp_path / 'app.db'}"

        first = runner.invoke(app, ["migrate", str(migrations), "--database-url", url])
        assert first.exit_code == 0, first.output
        assert "applied 001 init" in first.output

        second = runner.invoke(app, ["migrate", str(migrations), "--database-url", url])
        assert second.exit_code == 0
        assert "No pending migrations" in second.output

    def test_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["migrate", str(tmp_path / "nope"), "--database-url", "sqlite://"]
        )
        assert result.exit_code == 1

    def test_unsupported_url(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["migrate", str(tmp_path), "--database-url", "mysql://h/db"])
        assert result.exit_code == 1

    def test_no_url_configured(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["migrate", str(tmp_path)])
        assert result.exit_code == 1

    def test_failing_migration(self, tmp_path: Path) -> None:
        (tmp_path / "001_broken.sql").write_text("CREATE TABLE (", encoding="utf-8")
        result = runner.invoke(app, ["migrate", str(tmp_path), "--database-url", "sqlite://"])
        assert result.exit_code == 1


class TestProbeCommand:
    def test_real_database(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        result = runner.invoke(app, ["probe"])
        assert result.exit_code == 0, result.output
        assert "database: real" in result.output

    def test_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMERGENCY_ACCESS", "true")
        result = runner.invoke(app, ["probe"])
        assert result.exit_code == 0, result.output
        assert "database: fallback" in result.output

    def test_unconfigured(self) -> None:
        result = runner.invoke(app, ["probe"])
        assert result.exit_code == 1


class TestBackupCommands:
    def test_export_and_convert(self, source_db: Path, tmp_path: Path) -> None:
        out = tmp_path / "backup"

        exported = runner.invoke(
            app,
            [
                "backup",
                "export",
                "--source",
                f"sqlite:///{source_db}",
                "--out",
                str(out),
                "--table",
                "users",
            ],
        )
        assert exported.exit_code == 0, exported.output
        assert "exported 2 rows" in exported.output
        assert (out / "users_export.csv").exists()

        converted = runner.invoke(
            app, ["backup", "convert", "--dir", str(out), "--table", "users"]
        )
        assert converted.exit_code == 0
        assert "users: 2 rows converted" in converted.output
        assert (out / "users_postgresql.csv").exists()

    def test_validate(self, source_db: Path) -> None:
        ok = runner.invoke(
            app, ["backup", "validate", "--target", f"sqlite:///{source_db}", "--table", "users"]
        )
        assert ok.exit_code == 0
        assert "users: 2 rows ok" in ok.output

        missing = runner.invoke(
            app, ["backup", "validate", "--target", f"sqlite:///{source_db}", "--table", "roles"]
        )
        assert missing.exit_code == 1
