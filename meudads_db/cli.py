"""meudads-db command line."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer

from meudads_db.backup import (
    TABLES,
    BackupMigrator,
    convert_table,
    export_tables,
    import_tables,
    validate_tables,
)
from meudads_db.config import get_settings
from meudads_db.core.connection import AdapterHandle, ConnectionConfig
from meudads_db.core.dialect import rewrite
from meudads_db.core.environment import EnvironmentFactory
from meudads_db.core.exceptions import AdapterError, MeuDadsDBError
from meudads_db.core.executor import StatementExecutor
from meudads_db.core.logging import configure_logging
from meudads_db.core.migration import MigrationManager

T = TypeVar("T")

app = typer.Typer(
    name="meudads-db",
    help="MeuDads database tooling",
    no_args_is_help=True,
)
backup_app = typer.Typer(help="CSV backup and edge → Neon migration")
app.add_typer(backup_app, name="backup")


@app.callback()
def main() -> None:
    configure_logging(get_settings())


def _executor(url: Optional[str]) -> StatementExecutor:
    url = url or get_settings().database_url
    if not url:
        typer.echo("No database URL given and DATABASE_URL is not set", err=True)
        raise typer.Exit(1)
    try:
        config = ConnectionConfig.from_url(url)
    except AdapterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    return StatementExecutor(AdapterHandle(config))


def _run(factory: Callable[[], Awaitable[T]]) -> T:
    try:
        return asyncio.run(factory())
    except MeuDadsDBError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _tables(tables: Optional[list[str]]) -> list[str]:
    return list(tables) if tables else list(TABLES)


@app.command("rewrite")
def rewrite_command(sql: str = typer.Argument(..., help="SQLite-flavoured SQL")) -> None:
    """Print the PostgreSQL rendition of a statement."""
    typer.echo(rewrite(sql))


@app.command("probe")
def probe_command() -> None:
    """Build the environment and report which database it ended up with."""

    async def probe() -> str:
        environment = await EnvironmentFactory(get_settings()).create()
        try:
            return environment.mode.value
        finally:
            await environment.close()

    typer.echo(f"database: {_run(probe)}")


@app.command("migrate")
def migrate_command(
    migrations_dir: Path = typer.Argument(..., help="Directory of NNN_description.sql files"),
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Overrides DATABASE_URL"
    ),
) -> None:
    """Apply pending schema migrations."""
    if not migrations_dir.is_dir():
        typer.echo(f"Migrations directory not found: {migrations_dir}", err=True)
        raise typer.Exit(1)
    executor = _executor(database_url)

    async def migrate() -> list[Any]:
        try:
            return await MigrationManager(migrations_dir, executor).apply()
        finally:
            await executor.close()

    applied = _run(migrate)
    if not applied:
        typer.echo("No pending migrations")
    for migration in applied:
        typer.echo(f"applied {migration.version} {migration.description}")


@backup_app.command("export")
def export_command(
    source: str = typer.Option(..., "--source", help="Source database URL"),
    out: Path = typer.Option(Path("migration-backup"), "--out"),
    table: Optional[list[str]] = typer.Option(None, "--table"),
) -> None:
    """Export tables to <table>_export.csv."""
    executor = _executor(source)

    async def export() -> int:
        try:
            return sum((await export_tables(executor, out, _tables(table))).values())
        finally:
            await executor.close()

    typer.echo(f"exported {_run(export)} rows to {out}")


@backup_app.command("convert")
def convert_command(
    directory: Path = typer.Option(Path("migration-backup"), "--dir"),
    table: Optional[list[str]] = typer.Option(None, "--table"),
) -> None:
    """Convert exported CSV files for PostgreSQL."""
    for name in _tables(table):
        count = convert_table(name, directory)
        if count is not None:
            typer.echo(f"{name}: {count} rows converted")


@backup_app.command("import")
def import_command(
    target: Optional[str] = typer.Option(None, "--target", help="Defaults to DATABASE_URL"),
    directory: Path = typer.Option(Path("migration-backup"), "--dir"),
    table: Optional[list[str]] = typer.Option(None, "--table"),
    batch_size: int = typer.Option(100, "--batch-size"),
    clear_existing: bool = typer.Option(False, "--clear-existing", help="DELETE target rows first"),
) -> None:
    """Import converted CSV files, skipping rows that already exist."""
    executor = _executor(target)

    async def load() -> list[Any]:
        try:
            return await import_tables(
                executor,
                directory,
                _tables(table),
                batch_size=batch_size,
                clear_existing=clear_existing,
            )
        finally:
            await executor.close()

    outcomes = _run(load)
    for outcome in outcomes:
        typer.echo(f"{outcome.table}: {outcome.imported}/{outcome.total} rows imported")
    if any(outcome.failed_batches for outcome in outcomes):
        raise typer.Exit(1)


@backup_app.command("validate")
def validate_command(
    target: Optional[str] = typer.Option(None, "--target", help="Defaults to DATABASE_URL"),
    table: Optional[list[str]] = typer.Option(None, "--table"),
) -> None:
    """Count rows per table on the target database."""
    executor = _executor(target)

    async def validate() -> list[Any]:
        try:
            return await validate_tables(executor, _tables(table))
        finally:
            await executor.close()

    results = _run(validate)
    for result in results:
        status = "ok" if result.ok else f"FAILED ({result.error})"
        typer.echo(f"{result.table}: {result.count} rows {status}")
    if not all(result.ok for result in results):
        raise typer.Exit(1)


@backup_app.command("run")
def run_command(
    source: Optional[str] = typer.Option(None, "--source", help="Skip export when omitted"),
    target: Optional[str] = typer.Option(None, "--target", help="Defaults to DATABASE_URL"),
    backup_dir: Path = typer.Option(Path("migration-backup"), "--backup-dir"),
    logs_dir: Path = typer.Option(Path("migration-logs"), "--logs-dir"),
    batch_size: int = typer.Option(100, "--batch-size"),
    clear_existing: bool = typer.Option(False, "--clear-existing"),
) -> None:
    """Export, convert, import and validate in one go."""
    source_db = _executor(source) if source else None
    target_db = _executor(target)

    async def migrate() -> Any:
        try:
            return await BackupMigrator(
                source_db,
                target_db,
                backup_dir,
                logs_dir,
                batch_size=batch_size,
                clear_existing=clear_existing,
            ).run()
        finally:
            if source_db is not None:
                await source_db.close()
            await target_db.close()

    report = _run(migrate)
    stats = report.statistics
    typer.echo(
        f"tables: {stats.tables_processed}, records: {stats.records_processed}, "
        f"errors: {stats.errors}, warnings: {stats.warnings}"
    )
    if not report.succeeded:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
