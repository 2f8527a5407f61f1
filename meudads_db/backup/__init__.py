"""CSV backup and edge → Neon data migration."""

from __future__ import annotations

from meudads_db.backup.migrator import BackupMigrator, MigrationReport, TransferStats
from meudads_db.backup.transfer import (
    TABLES,
    ImportOutcome,
    TableValidation,
    convert_record,
    convert_table,
    export_table,
    export_tables,
    import_table,
    import_tables,
    validate_tables,
)

__all__ = [
    "TABLES",
    "BackupMigrator",
    "ImportOutcome",
    "MigrationReport",
    "TableValidation",
    "TransferStats",
    "convert_record",
    "convert_table",
    "export_table",
    "export_tables",
    "import_table",
    "import_tables",
    "validate_tables",
]
