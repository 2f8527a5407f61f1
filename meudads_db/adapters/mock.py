"""Fallback mock database.

Used only when emergency access is enabled and no real database is
reachable. It knows just enough to keep the login path alive: a lookup of
the configured admin email returns one synthetic admin record, a user count
returns 1, and everything else returns no rows. It never raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import structlog

from meudads_db.core.executor import ExecutionResult, ResultMeta
from meudads_db.core.statement import PreparedStatement, is_write_statement

logger = structlog.get_logger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@meudads.com.br"


class FallbackMockDatabase:
    """In-memory stand-in implementing the ``Database`` protocol."""

    def __init__(
        self,
        admin_email: str = DEFAULT_ADMIN_EMAIL,
        admin_password_hash: str | None = None,
    ) -> None:
        self.admin_email = admin_email.lower()
        self.admin_password_hash = admin_password_hash

    def admin_record(self) -> dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return {
            "id": "emergency-admin",
            "email": self.admin_email,
            "name": "Emergency Admin",
            "password_hash": self.admin_password_hash,
            "user_type": "admin",
            "is_active": True,
            "password_reset_required": False,
            "created_at": now,
            "updated_at": now,
        }

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
    ) -> ExecutionResult:
        logger.debug("fallback_query", sql=" ".join(sql.split())[:100])
        lowered = sql.lower()

        if "select" in lowered and "users" in lowered and "email" in lowered:
            requested = str(params[0]).lower() if params else None
            rows = [self.admin_record()] if requested == self.admin_email else []
            return ExecutionResult(rows=rows, meta=ResultMeta(duration=1, rows_read=len(rows)))

        if "count(*)" in lowered and "users" in lowered:
            return ExecutionResult(rows=[{"count": 1}], meta=ResultMeta(duration=1, rows_read=1))

        if is_write_statement(sql):
            return ExecutionResult(meta=ResultMeta(duration=1, rows_written=1, changes=1))
        return ExecutionResult(meta=ResultMeta(duration=1))

    def prepare(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self, sql)

    async def close(self) -> None:
        return None
