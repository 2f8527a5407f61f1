"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from meudads_db.config import Settings
from meudads_db.core.connection import AdapterHandle, ConnectionConfig
from meudads_db.core.executor import StatementExecutor
from tests.fakes import RecordingAdapter


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def pg_executor(recording_adapter: RecordingAdapter) -> StatementExecutor:
    """Executor over the recording adapter (rewrites to PostgreSQL)."""
    config = ConnectionConfig(driver="postgresql", dsn="postgresql://test/db")
    return StatementExecutor(AdapterHandle(config, adapter=recording_adapter))


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
async def sqlite_db(sqlite_config: ConnectionConfig):
    """Executor over an in-memory SQLite database with a users table."""
    executor = StatementExecutor(AdapterHandle(sqlite_config))
    await executor.execute(
        "CREATE TABLE users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "email TEXT UNIQUE NOT NULL, "
        "name TEXT NOT NULL, "
        "is_active BOOLEAN DEFAULT 1, "
        "created_at TEXT DEFAULT (datetime('now')))"
    )
    await executor.execute(
        "INSERT INTO users (email, name) VALUES (?, ?), (?, ?)",
        ("alice@example.com", "Alice", "bob@example.com", "Bob"),
    )
    yield executor
    await executor.close()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings isolated from the process environment and any .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "database_url": None,
            "jwt_secret": "test-secret",
            "crypto_key": "key",
            "crypto_iv": "iv",
            "emergency_access": False,
            "vercel": None,
            "deployment_platform": None,
            "cf_pages": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def write_sql(tmp_path: Path):
    """Helper to write SQL files under a temporary directory.

    Usage:
        write_sql("migrations/001_init.sql", "CREATE TABLE users (id INTEGER)")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = tmp_path / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write
