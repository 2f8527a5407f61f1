"""Prepared-statement facade.

Request handlers were written against the edge database's
``prepare(sql).bind(...).first() / .all() / .run()`` interface. These classes
offer the same shape over any ``Database``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from meudads_db.adapters.protocol import Database

_WRITE_VERB = re.compile(r"^\s*(INSERT|UPDATE|DELETE)\b", re.IGNORECASE)


def is_write_statement(sql: str) -> bool:
    """True when *sql* starts with INSERT, UPDATE or DELETE."""
    return _WRITE_VERB.match(sql) is not None


def estimate_changes(sql: str, row_count: int) -> int:
    """Guess the affected-row count when the driver did not report one.

    Writes count as the number of returned rows, or 1 if nothing came back;
    everything else counts as 0. This is an approximation: an UPDATE that
    matched nothing still reports 1.
    """
    if is_write_statement(sql):
        return row_count or 1
    return 0


@dataclass(frozen=True)
class RunMeta:
    duration: float
    changes: int
    last_row_id: int | None = None


@dataclass(frozen=True)
class RunResult:
    """Write acknowledgement returned by ``run()``."""

    success: bool
    meta: RunMeta


class BoundStatement:
    """A prepared statement with its positional parameters."""

    def __init__(self, database: Database, sql: str, params: tuple[Any, ...]) -> None:
        self._database = database
        self.sql = sql
        self.params = params

    async def first(self) -> dict[str, Any] | None:
        """First row, or None if there is none."""
        result = await self._database.execute(self.sql, self.params)
        return result.rows[0] if result.rows else None

    async def all(self) -> list[dict[str, Any]]:
        result = await self._database.execute(self.sql, self.params)
        return list(result.rows)

    async def run(self) -> RunResult:
        result = await self._database.execute(self.sql, self.params)
        changes = result.meta.changes
        if changes is None:
            changes = estimate_changes(self.sql, len(result.rows))
        return RunResult(
            success=True,
            meta=RunMeta(
                duration=result.meta.duration,
                changes=changes,
                last_row_id=result.meta.last_row_id,
            ),
        )


class PreparedStatement:
    """Entry point returned by ``Database.prepare``.

    ``bind(*params)`` attaches parameters; ``first``/``all``/``run`` on the
    prepared statement itself execute it without parameters.
    """

    def __init__(self, database: Database, sql: str) -> None:
        self._database = database
        self.sql = sql

    def bind(self, *params: Any) -> BoundStatement:
        return BoundStatement(self._database, self.sql, params)

    async def first(self) -> dict[str, Any] | None:
        return await self.bind().first()

    async def all(self) -> list[dict[str, Any]]:
        return await self.bind().all()

    async def run(self) -> RunResult:
        return await self.bind().run()
