"""Connection configuration and the adapter handle.

ConnectionConfig is a Pydantic model for type-safe connection config.
AdapterHandle owns one driver adapter plus its pool; the pool is opened on
first use and exactly once, even when several coroutines race for it.
"""

from __future__ import annotations

import asyncio
import importlib
from contextlib import asynccontextmanager
from typing import Any

import structlog
from pydantic import BaseModel

from meudads_db.core.enums import DatabaseBackend
from meudads_db.core.exceptions import AdapterError, ConnectionError  # noqa: A004

logger = structlog.get_logger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    pool_size: int = 5
    pool_min_size: int = 1
    pool_timeout: float = 30.0
    pool_recycle: int = 1800
    connect_timeout: float = 10.0
    extra: dict[str, Any] = {}

    @classmethod
    def from_url(cls, url: str, **overrides: Any) -> ConnectionConfig:
        """Build a config from a database URL.

        ``postgres://`` / ``postgresql://`` URLs are handed to libpq as-is;
        ``sqlite:///path`` opens a file and ``sqlite://`` an in-memory database.
        """
        scheme, sep, rest = url.partition("://")
        if not sep:
            raise AdapterError(f"Not a database URL: {url!r}")
        scheme = scheme.lower()

        if scheme in ("postgres", "postgresql"):
            return cls(driver=DatabaseBackend.POSTGRESQL.value, dsn=url, **overrides)
        if scheme == "sqlite":
            database = rest[1:] if rest.startswith("/") else rest
            database = database or ":memory:"
            if database == ":memory:":
                # every connection to :memory: is a separate database
                overrides["pool_size"] = 1
            return cls(driver=DatabaseBackend.SQLITE.value, database=database, **overrides)
        raise AdapterError(f"Unsupported database URL scheme: {scheme}")


# Adapter module mapping: driver name → (module_path, class_name)
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "sqlite": ("meudads_db.adapters.sqlite", "SqliteAsyncAdapter"),
    "postgresql": ("meudads_db.adapters.postgresql", "PostgresqlAsyncAdapter"),
}


def _load_adapter(driver: str) -> Any:
    """Load an async adapter by driver name."""
    driver_lower = driver.lower()
    if driver_lower not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported database driver: {driver}")

    module_path, cls_name = _ADAPTER_MAP[driver_lower]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


class AdapterHandle:
    """Long-lived owner of a driver adapter and its connection pool.

    Construct one per process environment and pass it to whatever needs the
    database. The pool is created lazily; concurrent first use waits on a
    single in-flight initialization instead of opening several pools.
    """

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver)
        self._pool: Any = None
        self._init_lock = asyncio.Lock()

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def initialize_pool(self) -> Any:
        """Open the pool if needed and return it.

        Raises:
            ConnectionError: If the driver cannot open the pool.
        """
        if self._pool is not None:
            return self._pool
        async with self._init_lock:
            if self._pool is None:
                try:
                    self._pool = await self._adapter.create_pool_async(self.config)
                except AdapterError:
                    raise
                except Exception as e:
                    logger.error(
                        "pool_initialization_failed",
                        driver=self.config.driver,
                        error=str(e),
                    )
                    raise ConnectionError(
                        f"Could not connect to {self.config.driver} database: {e}"
                    ) from e
                logger.info("pool_initialized", driver=self.config.driver)
        return self._pool

    @asynccontextmanager
    async def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a pooled connection as an async context manager."""
        pool = await self.initialize_pool()
        connection = await self._adapter.acquire_connection_async(pool)
        try:
            yield connection
        finally:
            await self._adapter.release_connection_async(connection, pool)

    async def close(self) -> None:
        """Close the pool. The handle can be reopened by using it again."""
        if self._pool is not None:
            await self._adapter.close_pool_async(self._pool)
            self._pool = None
            logger.info("pool_closed", driver=self.config.driver)
