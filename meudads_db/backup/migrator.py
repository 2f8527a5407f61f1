"""End-to-end edge → Neon data migration.

    export → convert → import → validate → report

Each phase works table by table; a failing table is logged and counted and
the run continues. The report says whether anything went wrong.
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from meudads_db.adapters.protocol import Database
from meudads_db.backup.transfer import (
    DEFAULT_BATCH_SIZE,
    TABLES,
    TableValidation,
    convert_table,
    export_table,
    import_table,
    validate_tables,
)
from meudads_db.core.exceptions import BackupError, ExecutionError

logger = structlog.get_logger(__name__)


@dataclass
class TransferStats:
    tables_processed: int = 0
    records_processed: int = 0
    errors: int = 0
    warnings: int = 0


@dataclass
class MigrationReport:
    completed_at: str
    duration_ms: int
    statistics: TransferStats
    validations: list[TableValidation] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.statistics.errors == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "migration_completed_at": self.completed_at,
            "duration_ms": self.duration_ms,
            "statistics": asdict(self.statistics),
            "validations": [v.to_dict() for v in self.validations],
        }


class BackupMigrator:
    """Move the application tables from *source* to *target* through CSV files.

    *source* may be None to import files already sitting in *backup_dir*.
    """

    def __init__(
        self,
        source: Database | None,
        target: Database,
        backup_dir: Path | str,
        logs_dir: Path | str,
        *,
        tables: Sequence[str] = TABLES,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clear_existing: bool = False,
    ) -> None:
        self.source = source
        self.target = target
        self.backup_dir = Path(backup_dir)
        self.logs_dir = Path(logs_dir)
        self.tables = tuple(tables)
        self.batch_size = batch_size
        self.clear_existing = clear_existing
        self.stats = TransferStats()

    async def export(self) -> None:
        if self.source is None:
            raise BackupError("No source database to export from")
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        for table in self.tables:
            try:
                self.stats.records_processed += await export_table(
                    self.source, table, self.backup_dir
                )
            except ExecutionError as e:
                logger.error("table_export_failed", table=table, error=str(e))
                self.stats.errors += 1

    def convert(self) -> None:
        for table in self.tables:
            if convert_table(table, self.backup_dir) is None:
                self.stats.warnings += 1

    async def import_(self) -> None:
        for table in self.tables:
            outcome = await import_table(
                self.target,
                table,
                self.backup_dir,
                batch_size=self.batch_size,
                clear_existing=self.clear_existing,
            )
            if outcome is None:
                self.stats.warnings += 1
                continue
            self.stats.errors += outcome.failed_batches
            self.stats.tables_processed += 1

    async def validate(self) -> list[TableValidation]:
        validations = await validate_tables(self.target, self.tables)
        self.stats.errors += sum(1 for v in validations if not v.ok)
        self._write_json(
            "validation-report.json", [v.to_dict() for v in validations]
        )
        ok = sum(1 for v in validations if v.ok)
        logger.info("validation_finished", ok=ok, total=len(validations))
        return validations

    async def run(self) -> MigrationReport:
        started = time.monotonic()
        logger.info("migration_started", tables=len(self.tables))

        if self.source is not None:
            await self.export()
        self.convert()
        await self.import_()
        validations = await self.validate()

        report = MigrationReport(
            completed_at=datetime.now(timezone.utc).isoformat(),
            duration_ms=int((time.monotonic() - started) * 1000),
            statistics=self.stats,
            validations=validations,
        )
        self._write_json("migration-report.json", report.to_dict())
        logger.info("migration_finished", **asdict(self.stats))
        return report

    def _write_json(self, name: str, payload: Any) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        path = self.logs_dir / name
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
