"""PostgreSQL (Neon) adapter - async psycopg (v3+) over psycopg_pool."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from meudads_db.core.connection import ConnectionConfig


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields.

    A full DSN/URL wins over the individual fields.
    """
    if config.dsn:
        return config.dsn
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    if config.database is not None:
        parts.append(f"dbname={config.database}")
    return " ".join(parts)


class PostgresqlAsyncAdapter:
    """Asynchronous PostgreSQL adapter using psycopg (v3+) async support.

    Connections run in autocommit mode: every statement stands alone, there
    are no transactions spanning several statements.
    """

    @property
    def dialect(self) -> str:
        return "postgresql"

    @property
    def paramstyle(self) -> str:
        return "format"

    async def create_pool_async(self, config: ConnectionConfig) -> Any:
        from psycopg.rows import dict_row
        from psycopg_pool import AsyncConnectionPool

        pool = AsyncConnectionPool(
            _build_conninfo(config),
            min_size=config.pool_min_size,
            max_size=config.pool_size,
            timeout=config.pool_timeout,
            max_lifetime=float(config.pool_recycle),
            kwargs={"autocommit": True, "row_factory": dict_row, **config.extra},
            open=False,
        )
        try:
            await pool.open(wait=True, timeout=config.connect_timeout)
        except Exception:
            await pool.close()
            raise
        return pool

    async def acquire_connection_async(self, pool: Any) -> Any:
        return await pool.getconn()

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        await pool.putconn(connection)

    async def close_pool_async(self, pool: Any) -> None:
        await pool.close()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] | None = None,
    ) -> Any:
        return await connection.execute(sql, params)
