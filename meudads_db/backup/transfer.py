"""CSV export, conversion and import between the edge and Neon databases.

Files live side by side in one backup directory:

    <table>_export.csv      rows as read from the source database
    <table>_postgresql.csv  the same rows converted for PostgreSQL
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from meudads_db.adapters.protocol import Database
from meudads_db.core.exceptions import BackupError, ExecutionError

logger = structlog.get_logger(__name__)

# Application tables in dependency order (parents before children).
TABLES: tuple[str, ...] = (
    "users",
    "roles",
    "permissions",
    "clients",
    "role_permissions",
    "user_roles",
    "user_client_access",
    "user_sessions",
    "ad_accounts",
    "campaigns",
    "ads_active_raw",
    "selections",
    "selection_ad_reasons",
    "user_permission_restrictions",
    "admin_notifications",
    "sync_schedules",
    "sync_config_data",
)

DEFAULT_BATCH_SIZE = 100

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TRUE_VALUES = frozenset({"1", "true", "t", "yes"})


def export_path(directory: Path, table: str) -> Path:
    return directory / f"{table}_export.csv"


def converted_path(directory: Path, table: str) -> Path:
    return directory / f"{table}_postgresql.csv"


def check_identifier(name: str) -> str:
    """Return *name* if it is a plain SQL identifier, else raise BackupError.

    Table and column names are interpolated into SQL text, so only
    ``[A-Za-z_][A-Za-z0-9_]*`` is accepted.
    """
    if not _IDENTIFIER.match(name):
        raise BackupError(f"Invalid SQL identifier: {name!r}")
    return name


def _is_boolean_column(column: str) -> bool:
    return column.startswith("is_") or column.endswith(("_active", "_required"))


def _is_timestamp_column(column: str) -> bool:
    return column.endswith("_at")


def _to_iso_timestamp(value: str) -> str:
    """ISO 8601 in UTC; naive SQLite timestamps are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def convert_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert one exported row to PostgreSQL-friendly values.

    * empty strings become NULL;
    * boolean-ish columns (``is_*``, ``*_active``, ``*_required``) become 1/0,
      since the schema stores booleans as INTEGER;
    * ``*_at`` timestamps are normalised to ISO 8601 UTC; values that do not
      parse are kept as they are.
    """
    converted: dict[str, Any] = {}
    for key, value in record.items():
        if value is None or value == "":
            converted[key] = None
        elif _is_boolean_column(key):
            converted[key] = 1 if str(value).strip().lower() in _TRUE_VALUES else 0
        elif _is_timestamp_column(key):
            converted[key] = _to_iso_timestamp(str(value))
        else:
            converted[key] = value
    return converted


def _write_csv(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        if not rows:
            return
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def _read_csv(path: Path) -> list[dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as f:
        return [row for row in csv.DictReader(f) if any(row.values())]


async def export_table(source: Database, table: str, directory: Path) -> int:
    """Dump *table* from *source* into ``<table>_export.csv``.

    Returns the number of exported rows.
    """
    check_identifier(table)
    rows = await source.prepare(f"SELECT * FROM {table}").all()
    _write_csv(export_path(directory, table), rows)
    logger.info("table_exported", table=table, rows=len(rows))
    return len(rows)


async def export_tables(
    source: Database,
    directory: Path,
    tables: Iterable[str] = TABLES,
) -> dict[str, int]:
    """Export each of *tables*; returns rows exported per table."""
    directory.mkdir(parents=True, exist_ok=True)
    return {table: await export_table(source, table, directory) for table in tables}


def convert_table(table: str, directory: Path) -> int | None:
    """Convert ``<table>_export.csv`` into ``<table>_postgresql.csv``.

    Returns the number of converted rows, or None when there is no export
    file for *table*.
    """
    source_path = export_path(directory, check_identifier(table))
    if not source_path.exists():
        logger.warning("export_file_missing", table=table, path=str(source_path))
        return None

    records = [convert_record(record) for record in _read_csv(source_path)]
    _write_csv(converted_path(directory, table), records)
    logger.info("table_converted", table=table, rows=len(records))
    return len(records)


def _insert_sql(table: str, columns: list[str]) -> str:
    placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({placeholders}) ON CONFLICT DO NOTHING"
    )


@dataclass(frozen=True)
class ImportOutcome:
    table: str
    total: int
    imported: int
    failed_batches: int


async def import_table(
    target: Database,
    table: str,
    directory: Path,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    clear_existing: bool = False,
) -> ImportOutcome | None:
    """Load ``<table>_postgresql.csv`` into *target*.

    Rows already present (by any unique constraint) are skipped. A failing
    row aborts the rest of its batch; the failure is logged and counted and
    the import carries on with the next batch.

    Returns None when there is no converted file for *table*.
    """
    source_path = converted_path(directory, check_identifier(table))
    if not source_path.exists():
        logger.warning("converted_file_missing", table=table, path=str(source_path))
        return None

    records = [
        {key: (value if value != "" else None) for key, value in record.items()}
        for record in _read_csv(source_path)
    ]
    if not records:
        logger.warning("nothing_to_import", table=table)
        return ImportOutcome(table=table, total=0, imported=0, failed_batches=0)

    columns = [check_identifier(column) for column in records[0]]
    sql = _insert_sql(table, columns)

    if clear_existing:
        await target.prepare(f"DELETE FROM {table}").run()

    imported = 0
    failed_batches = 0
    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        try:
            for record in batch:
                await target.prepare(sql).bind(*(record[c] for c in columns)).run()
                imported += 1
        except ExecutionError as e:
            failed_batches += 1
            logger.error(
                "import_batch_failed",
                table=table,
                batch_start=start,
                batch_end=start + len(batch),
                error=str(e),
            )

    logger.info("table_imported", table=table, imported=imported, total=len(records))
    return ImportOutcome(
        table=table,
        total=len(records),
        imported=imported,
        failed_batches=failed_batches,
    )


async def import_tables(
    target: Database,
    directory: Path,
    tables: Iterable[str] = TABLES,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    clear_existing: bool = False,
) -> list[ImportOutcome]:
    """Import each of *tables* that has a converted file, in order."""
    outcomes: list[ImportOutcome] = []
    for table in tables:
        outcome = await import_table(
            target,
            table,
            directory,
            batch_size=batch_size,
            clear_existing=clear_existing,
        )
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes


@dataclass(frozen=True)
class TableValidation:
    table: str
    count: int
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"table": self.table, "count": self.count, "ok": self.ok}
        if self.error is not None:
            data["error"] = self.error
        return data


async def validate_tables(
    target: Database,
    tables: Iterable[str] = TABLES,
) -> list[TableValidation]:
    """Count rows per table on *target*; a failing count marks the table not ok."""
    results: list[TableValidation] = []
    for table in tables:
        check_identifier(table)
        try:
            row = await target.prepare(f"SELECT COUNT(*) AS count FROM {table}").first()
        except ExecutionError as e:
            logger.error("table_validation_failed", table=table, error=str(e))
            results.append(TableValidation(table=table, count=0, ok=False, error=str(e)))
            continue
        count = int(row["count"]) if row is not None else 0
        results.append(TableValidation(table=table, count=count, ok=True))
    return results
