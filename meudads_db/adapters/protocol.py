"""Adapter protocols.

``AsyncAdapter`` is the driver level: pools, connections, raw cursors.
``Database`` is what request handlers talk to: statement execution and the
prepared-statement facade. The real executor and the fallback mock are both
``Database`` implementations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from meudads_db.core.connection import ConnectionConfig

if TYPE_CHECKING:
    from meudads_db.core.executor import ExecutionResult
    from meudads_db.core.statement import PreparedStatement


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database driver adapter protocol."""

    @property
    def dialect(self) -> str:
        """SQL dialect the driver speaks: 'sqlite' or 'postgresql'."""
        ...

    @property
    def paramstyle(self) -> str:
        """Placeholder style: 'qmark' (?) or 'format' (%s)."""
        ...

    async def create_pool_async(self, config: ConnectionConfig) -> Any:
        """Create an async connection pool."""
        ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Acquire a connection from the async pool."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the async pool."""
        ...

    async def close_pool_async(self, pool: Any) -> None:
        """Close the async pool."""
        ...

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: Sequence[Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor-like object."""
        ...


@runtime_checkable
class Database(Protocol):
    """Statement-level interface handed to request handlers."""

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
    ) -> ExecutionResult:
        """Execute *sql* with positional *params*."""
        ...

    def prepare(self, sql: str) -> PreparedStatement:
        """Wrap *sql* in the bind/first/all/run facade."""
        ...

    async def close(self) -> None:
        """Release whatever the database holds open."""
        ...
