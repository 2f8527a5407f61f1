"""SQLite adapter for the legacy edge database - async via aiosqlite."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from meudads_db.core.connection import ConnectionConfig
from meudads_db.core.exceptions import PoolError


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter using aiosqlite.

    SQL is passed through without dialect rewriting; the statements are
    already written for SQLite.
    """

    @property
    def dialect(self) -> str:
        return "sqlite"

    @property
    def paramstyle(self) -> str:
        return "qmark"

    async def create_pool_async(self, config: ConnectionConfig) -> list[Any]:
        """Create async SQLite connection pool."""
        import aiosqlite

        if not config.database:
            raise PoolError("SQLite requires a database path")

        pool: list[Any] = []
        for _ in range(config.pool_size):
            # isolation_level=None: autocommit, like the edge database
            conn = await aiosqlite.connect(config.database, isolation_level=None)
            conn.row_factory = aiosqlite.Row
            if config.database != ":memory:":
                await conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    async def acquire_connection_async(self, pool: list[Any]) -> Any:
        """Acquire an async connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    async def release_connection_async(self, connection: Any, pool: list[Any]) -> None:
        """Release an async connection back to the pool."""
        pool.append(connection)

    async def close_pool_async(self, pool: list[Any]) -> None:
        """Close all async connections."""
        for conn in pool:
            await conn.close()
        pool.clear()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] | None = None,
    ) -> Any:
        """Execute SQL asynchronously and return a cursor."""
        return await connection.execute(sql, params or ())
