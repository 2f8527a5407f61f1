"""Contract tests for adapter protocol compliance."""

from __future__ import annotations

import pytest

from meudads_db.adapters.mock import FallbackMockDatabase
from meudads_db.adapters.postgresql import PostgresqlAsyncAdapter, _build_conninfo
from meudads_db.adapters.protocol import AsyncAdapter, Database
from meudads_db.adapters.sqlite import SqliteAsyncAdapter
from meudads_db.core.connection import AdapterHandle, ConnectionConfig
from meudads_db.core.exceptions import PoolError
from meudads_db.core.executor import StatementExecutor
from tests.fakes import RecordingAdapter


class TestSqliteAsyncAdapterProtocol:
    def test_implements_async_protocol(self) -> None:
        adapter = SqliteAsyncAdapter()
        assert isinstance(adapter, AsyncAdapter)

    def test_dialect_and_paramstyle(self) -> None:
        adapter = SqliteAsyncAdapter()
        assert adapter.dialect == "sqlite"
        assert adapter.paramstyle == "qmark"

    async def test_lifecycle(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAsyncAdapter()
        pool = await adapter.create_pool_async(sqlite_config)
        assert len(pool) == 1

        conn = await adapter.acquire_connection_async(pool)
        assert conn is not None

        cursor = await adapter.execute_async(conn, "SELECT ? AS val", (1,))
        row = await cursor.fetchone()
        assert row["val"] == 1
        await cursor.close()

        await adapter.release_connection_async(conn, pool)
        assert len(pool) == 1

        await adapter.close_pool_async(pool)
        assert len(pool) == 0

    async def test_exhausted_pool(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAsyncAdapter()
        pool = await adapter.create_pool_async(sqlite_config)
        conn = await adapter.acquire_connection_async(pool)
        try:
            with pytest.raises(PoolError):
                await adapter.acquire_connection_async(pool)
        finally:
            await adapter.release_connection_async(conn, pool)
            await adapter.close_pool_async(pool)

    async def test_requires_database(self) -> None:
        with pytest.raises(PoolError):
            await SqliteAsyncAdapter().create_pool_async(ConnectionConfig(driver="sqlite"))


class TestPostgresqlAsyncAdapterProtocol:
    def test_implements_async_protocol(self) -> None:
        assert isinstance(PostgresqlAsyncAdapter(), AsyncAdapter)

    def test_dialect_and_paramstyle(self) -> None:
        adapter = PostgresqlAsyncAdapter()
        assert adapter.dialect == "postgresql"
        assert adapter.paramstyle == "format"

    def test_dsn_wins(self) -> None:
        config = ConnectionConfig(
            driver="postgresql", dsn="postgresql://u@h/db", host="ignored", port=5432
        )
        assert _build_conninfo(config) == "postgresql://u@h/db"

    def test_conninfo_from_fields(self) -> None:
        config = ConnectionConfig(
            driver="postgresql",
            host="localhost",
            port=5432,
            user="meudads",
            password="pw",
            database="app",
        )
        assert _build_conninfo(config) == (
            "host=localhost port=5432 user=meudads password=pw dbname=app"
        )


class TestFakeAdapterProtocol:
    def test_recording_adapter_matches(self) -> None:
        assert isinstance(RecordingAdapter(), AsyncAdapter)


class TestDatabaseProtocol:
    def test_executor(self, sqlite_config: ConnectionConfig) -> None:
        assert isinstance(StatementExecutor(AdapterHandle(sqlite_config)), Database)

    def test_fallback_mock(self) -> None:
        assert isinstance(FallbackMockDatabase(), Database)
