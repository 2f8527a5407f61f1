"""Database migration management.

Manages versioned SQL migration files with numeric ordering, incremental
execution, and tracking of applied versions. Migration files are written in
the SQLite dialect; run against a PostgreSQL-backed executor they pass
through the dialect rewriter like any other statement.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import structlog

from meudads_db.adapters.protocol import Database
from meudads_db.core.dialect import split_statements
from meudads_db.core.exceptions import (
    ExecutionError,
    MigrationExecutionError,
    MigrationFileError,
)

logger = structlog.get_logger(__name__)

_MIGRATION_PATTERN = re.compile(r"^(\d+)_(.+)\.sql$")

_CREATE_TRACKING_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version     TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    applied_at  TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass(frozen=True)
class MigrationInfo:
    """Metadata about a single migration file."""

    version: str
    description: str
    file_path: Path
    applied: bool = False


class MigrationManager:
    """Manages forward-only SQL schema migrations.

    Migration files must follow: NNN_description.sql
    Applied migrations are tracked in the `schema_migrations` table.

    Statements inside one file run one after another with no transaction
    around them; a failure part-way leaves the earlier statements applied
    and the version unrecorded.
    """

    def __init__(self, migration_dir: Path | str, database: Database) -> None:
        self._migration_dir = Path(migration_dir)
        self._database = database
        self._tracking_ready = False

    async def _ensure_tracking_table(self) -> None:
        if not self._tracking_ready:
            await self._database.execute(_CREATE_TRACKING_TABLE)
            self._tracking_ready = True

    async def _get_applied_versions(self) -> set[str]:
        await self._ensure_tracking_table()
        rows = await self._database.prepare(
            "SELECT version FROM schema_migrations ORDER BY version"
        ).all()
        return {str(row["version"]) for row in rows}

    async def discover(self) -> list[MigrationInfo]:
        """Discover all migration files and their applied status."""
        applied_versions = await self._get_applied_versions()
        migrations: list[MigrationInfo] = []

        for file_path in sorted(self._migration_dir.glob("*.sql")):
            match = _MIGRATION_PATTERN.match(file_path.name)
            if not match:
                raise MigrationFileError(
                    file_path.name,
                    "Must match pattern NNN_description.sql",
                )

            version = match.group(1)
            migrations.append(
                MigrationInfo(
                    version=version,
                    description=match.group(2),
                    file_path=file_path,
                    applied=version in applied_versions,
                )
            )

        return sorted(migrations, key=lambda m: m.version)

    async def pending(self) -> list[MigrationInfo]:
        """Return only unapplied migrations, sorted by version."""
        return [m for m in await self.discover() if not m.applied]

    async def applied(self) -> list[MigrationInfo]:
        """Return list of already-applied migrations."""
        return [m for m in await self.discover() if m.applied]

    async def apply(self) -> list[MigrationInfo]:
        """Apply all pending migrations in order.

        Stops on first failure. Returns list of successfully applied migrations.
        """
        applied: list[MigrationInfo] = []

        for migration in await self.pending():
            sql = migration.file_path.read_text(encoding="utf-8")
            logger.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                for statement in split_statements(sql):
                    await self._database.execute(statement)
                await self._database.prepare(
                    "INSERT INTO schema_migrations (version, description) VALUES (?, ?)"
                ).bind(migration.version, migration.description).run()
            except ExecutionError as e:
                logger.error("migration_failed", version=migration.version, error=str(e))
                raise MigrationExecutionError(migration.version, str(e)) from e

            applied.append(
                MigrationInfo(
                    version=migration.version,
                    description=migration.description,
                    file_path=migration.file_path,
                    applied=True,
                )
            )
            logger.info("migration_applied", version=migration.version)

        return applied

    async def current_version(self) -> str | None:
        """Return the version string of the last applied migration, or None."""
        await self._ensure_tracking_table()
        row = await self._database.prepare(
            "SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1"
        ).first()
        if row is None:
            return None
        return str(row["version"])
