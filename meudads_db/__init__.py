"""meudads-db - SQLite-to-PostgreSQL query adapter for the MeuDads dashboard."""

from __future__ import annotations

from meudads_db.adapters.mock import FallbackMockDatabase
from meudads_db.adapters.protocol import AsyncAdapter, Database
from meudads_db.config import Settings, get_settings
from meudads_db.core.connection import AdapterHandle, ConnectionConfig
from meudads_db.core.dialect import REWRITE_RULES, RewriteRule, rewrite, split_statements
from meudads_db.core.enums import (
    AdapterMode,
    DatabaseBackend,
    DeploymentPlatform,
    EnvironmentState,
)
from meudads_db.core.environment import (
    Environment,
    EnvironmentFactory,
    create_environment,
    detect_deployment_platform,
    error_payload,
    is_vercel_environment,
    validate_database_connection,
)
from meudads_db.core.exceptions import (
    AdapterError,
    BackupError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    MeuDadsDBError,
    MigrationError,
    MigrationExecutionError,
    MigrationFileError,
    ParameterBindingError,
    PoolError,
    QueryExecutionError,
)
from meudads_db.core.executor import ExecutionResult, ResultMeta, StatementExecutor
from meudads_db.core.logging import configure_logging
from meudads_db.core.migration import MigrationInfo, MigrationManager
from meudads_db.core.statement import (
    BoundStatement,
    PreparedStatement,
    RunMeta,
    RunResult,
    estimate_changes,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Connection
    "ConnectionConfig",
    "AdapterHandle",
    # Dialect
    "rewrite",
    "split_statements",
    "RewriteRule",
    "REWRITE_RULES",
    # Execution
    "StatementExecutor",
    "ExecutionResult",
    "ResultMeta",
    "PreparedStatement",
    "BoundStatement",
    "RunResult",
    "RunMeta",
    "estimate_changes",
    # Adapters
    "AsyncAdapter",
    "Database",
    "FallbackMockDatabase",
    # Environment
    "Environment",
    "EnvironmentFactory",
    "create_environment",
    "validate_database_connection",
    "is_vercel_environment",
    "detect_deployment_platform",
    "error_payload",
    # Logging
    "configure_logging",
    # Migration
    "MigrationManager",
    "MigrationInfo",
    # Enums
    "AdapterMode",
    "DatabaseBackend",
    "DeploymentPlatform",
    "EnvironmentState",
    # Exceptions
    "MeuDadsDBError",
    "ConfigurationError",
    "ExecutionError",
    "QueryExecutionError",
    "ParameterBindingError",
    "MigrationError",
    "MigrationFileError",
    "MigrationExecutionError",
    "BackupError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
