"""meudads-db exception hierarchy.

Driver exceptions are chained onto these (``raise ... from e``) so callers
can catch one family while the original cause stays inspectable.
"""

from __future__ import annotations


class MeuDadsDBError(Exception):
    """Base exception for all meudads-db errors."""


class ConfigurationError(MeuDadsDBError):
    """Raised when the environment cannot produce a usable database."""


# --- Execution ---


class ExecutionError(MeuDadsDBError):
    """Base for statement execution errors."""


class QueryExecutionError(ExecutionError):
    """Raised when the database rejects a statement."""

    def __init__(
        self,
        original_sql: str,
        rewritten_sql: str,
        param_count: int,
        detail: str,
    ) -> None:
        self.original_sql = original_sql
        self.rewritten_sql = rewritten_sql
        self.param_count = param_count
        self.detail = detail
        super().__init__(
            f"Query failed ({param_count} params): {detail}\n"
            f"  original:  {original_sql}\n"
            f"  rewritten: {rewritten_sql}"
        )


class ParameterBindingError(ExecutionError):
    """Raised when parameters do not line up with the statement placeholders."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Parameter binding error: {detail} in {sql!r}")


# --- Migration ---


class MigrationError(MeuDadsDBError):
    """Base for schema migration errors."""


class MigrationFileError(MigrationError):
    """Raised for invalid migration file naming."""

    def __init__(self, file_name: str, detail: str) -> None:
        self.file_name = file_name
        super().__init__(f"Invalid migration file '{file_name}': {detail}")


class MigrationExecutionError(MigrationError):
    """Raised when a migration fails to execute."""

    def __init__(self, version: str, detail: str) -> None:
        self.version = version
        super().__init__(f"Migration {version} failed: {detail}")


# --- Backup ---


class BackupError(MeuDadsDBError):
    """Raised by the CSV backup/migration tooling."""


# --- Adapter ---


class AdapterError(MeuDadsDBError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
