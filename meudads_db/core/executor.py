"""Statement execution.

The StatementExecutor rewrites SQL for the target dialect, translates
placeholders, executes on a pooled connection, and normalizes whatever the
driver returns into an ExecutionResult.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from meudads_db.core.connection import AdapterHandle
from meudads_db.core.dialect import rewrite
from meudads_db.core.exceptions import QueryExecutionError
from meudads_db.core.params import bind_positional
from meudads_db.core.statement import PreparedStatement, is_write_statement

logger = structlog.get_logger(__name__)

_LOG_SQL_PREVIEW = 100


@dataclass(frozen=True)
class ResultMeta:
    """Execution metadata.

    ``changes`` is the driver's affected-row count for writes, ``0`` for
    other statements, and ``None`` when the driver did not report one.
    """

    duration: float = 0.0
    rows_read: int = 0
    rows_written: int = 0
    changes: int | None = 0
    last_row_id: int | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Rows plus metadata. ``rows`` is never None; no rows is an empty list."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    meta: ResultMeta = field(default_factory=ResultMeta)


async def _fetch_rows(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to a list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows_raw = await cursor.fetchall()
    if not rows_raw:
        return []

    # psycopg dict_row already yields dicts
    if isinstance(rows_raw[0], dict):
        return [dict(row) for row in rows_raw]
    return [dict(zip(columns, row, strict=True)) for row in rows_raw]


def _preview(sql: str) -> str:
    sql = " ".join(sql.split())
    if len(sql) > _LOG_SQL_PREVIEW:
        return sql[:_LOG_SQL_PREVIEW] + "..."
    return sql


class StatementExecutor:
    """Execute SQLite-flavoured SQL against the handle's database.

    PostgreSQL adapters get the statement through the dialect rewriter; SQLite
    adapters get it verbatim.
    """

    def __init__(self, handle: AdapterHandle) -> None:
        self._handle = handle
        self._adapter = handle.adapter
        self._translate = self._adapter.dialect == "postgresql"
        self._paramstyle: str = self._adapter.paramstyle

    @property
    def handle(self) -> AdapterHandle:
        return self._handle

    def translate(self, sql: str) -> str:
        """The statement text as it will be sent to this database."""
        return rewrite(sql) if self._translate else sql

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
    ) -> ExecutionResult:
        """Execute *sql* with positional *params*.

        Raises:
            ParameterBindingError: If *params* do not match the placeholders.
            ConnectionError: If the pool cannot be opened.
            QueryExecutionError: If the database rejects the statement.
        """
        target_sql = self.translate(sql)
        bound_sql, bound_params = bind_positional(target_sql, params, self._paramstyle)

        logger.debug(
            "executing_query",
            sql=_preview(target_sql),
            param_count=len(params),
        )
        started = time.perf_counter()

        async with self._handle.get_connection() as conn:
            try:
                cursor = await self._adapter.execute_async(conn, bound_sql, bound_params)
                rows = await _fetch_rows(cursor)
            except Exception as e:
                logger.error(
                    "query_failed",
                    original_sql=sql,
                    rewritten_sql=target_sql,
                    param_count=len(params),
                    error=str(e),
                )
                raise QueryExecutionError(sql, target_sql, len(params), str(e)) from e

            rowcount = getattr(cursor, "rowcount", -1)
            last_row_id = getattr(cursor, "lastrowid", None)
            close = getattr(cursor, "close", None)
            if close is not None:
                await close()

        if is_write_statement(sql):
            changes: int | None = rowcount if rowcount is not None and rowcount >= 0 else None
        else:
            changes = 0

        meta = ResultMeta(
            duration=(time.perf_counter() - started) * 1000,
            rows_read=len(rows),
            rows_written=changes or 0,
            changes=changes,
            last_row_id=last_row_id or None,
        )
        logger.debug("query_succeeded", rows=len(rows), changes=changes)
        return ExecutionResult(rows=rows, meta=meta)

    def prepare(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self, sql)

    async def close(self) -> None:
        await self._handle.close()
