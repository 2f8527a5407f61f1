"""Environment factory.

Builds the per-process Environment: the database every request handler
uses, plus secrets and service settings. The database is chosen once:

    UNCONFIGURED → PROBING → READY (real | fallback)

A configured database URL gets a real adapter, checked with one ``SELECT 1``
probe. With no URL, or a failed probe, the environment falls back to the
mock database only if emergency access is enabled; otherwise construction
fails. There are no retries and no reconnection; once READY the choice
holds for the lifetime of the factory.
"""

from __future__ import annotations

import os
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from meudads_db.adapters.mock import FallbackMockDatabase
from meudads_db.adapters.protocol import Database
from meudads_db.config import Settings, get_settings
from meudads_db.core.connection import AdapterHandle, ConnectionConfig
from meudads_db.core.enums import AdapterMode, DeploymentPlatform, EnvironmentState
from meudads_db.core.exceptions import (
    AdapterError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    ExecutionError,
)
from meudads_db.core.executor import StatementExecutor

logger = structlog.get_logger(__name__)

PROBE_SQL = "SELECT 1 AS test"


@dataclass
class Environment:
    """What a request handler needs: the database and the app's secrets."""

    db: Database
    mode: AdapterMode
    jwt_secret: str | None
    crypto_key: str | None
    crypto_iv: str | None
    resend_api_key: str | None
    from_email: str
    graph_api_version: str
    users_service_api_key: str | None
    users_service_api_url: str | None

    @property
    def is_fallback(self) -> bool:
        return self.mode is AdapterMode.FALLBACK

    async def close(self) -> None:
        await self.db.close()


class EnvironmentFactory:
    """Create the Environment once and hand back the same one afterwards."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._state = EnvironmentState.UNCONFIGURED
        self._environment: Environment | None = None

    @property
    def state(self) -> EnvironmentState:
        return self._state

    async def create(self) -> Environment:
        if self._environment is not None:
            return self._environment

        settings = self.settings
        self._state = EnvironmentState.PROBING
        logger.info("creating_environment", platform=detect_deployment_platform(settings).value)

        if not settings.jwt_secret:
            logger.error("jwt_secret_missing")
        if not settings.crypto_key or not settings.crypto_iv:
            logger.warning("crypto_keys_missing", detail="token decryption will fail")

        try:
            db, mode = await self._connect()
        except ConfigurationError:
            self._state = EnvironmentState.UNCONFIGURED
            raise

        self._environment = Environment(
            db=db,
            mode=mode,
            jwt_secret=settings.jwt_secret,
            crypto_key=settings.crypto_key,
            crypto_iv=settings.crypto_iv,
            resend_api_key=settings.resend_api_key,
            from_email=settings.from_email,
            graph_api_version=settings.graph_api_ver,
            users_service_api_key=settings.mocha_users_service_api_key,
            users_service_api_url=settings.mocha_users_service_api_url,
        )
        self._state = EnvironmentState.READY
        logger.info("environment_ready", mode=mode.value)
        return self._environment

    async def _connect(self) -> tuple[Database, AdapterMode]:
        settings = self.settings

        if not settings.database_url:
            logger.error("database_url_missing")
            return self._fallback("database_url_missing"), AdapterMode.FALLBACK

        try:
            config = ConnectionConfig.from_url(
                settings.database_url,
                pool_size=settings.db_pool_size,
                pool_min_size=settings.db_pool_min_size,
                pool_timeout=settings.db_pool_timeout,
                connect_timeout=settings.db_connect_timeout,
            )
            executor = StatementExecutor(AdapterHandle(config))
        except AdapterError as e:
            logger.error("database_adapter_creation_failed", error=str(e))
            return self._fallback("adapter_creation_failed", e), AdapterMode.FALLBACK

        try:
            logger.info("database_probe_started", driver=config.driver)
            await executor.execute(PROBE_SQL)
        except (AdapterError, ExecutionError) as e:
            logger.error("database_probe_failed", error=str(e))
            await executor.close()
            return self._fallback("probe_failed", e), AdapterMode.FALLBACK

        logger.info("database_probe_succeeded", driver=config.driver)
        return executor, AdapterMode.REAL

    def _fallback(self, reason: str, cause: Exception | None = None) -> Database:
        settings = self.settings
        if not settings.emergency_access:
            raise ConfigurationError(
                f"No usable database ({reason}) and emergency access is disabled"
            ) from cause

        logger.warning(
            "fallback_database_enabled",
            reason=reason,
            admin_email=settings.emergency_admin_email,
        )
        return FallbackMockDatabase(
            admin_email=settings.emergency_admin_email,
            admin_password_hash=settings.emergency_admin_password_hash,
        )


async def create_environment(settings: Settings | None = None) -> Environment:
    """Build an Environment with a fresh factory."""
    return await EnvironmentFactory(settings).create()


async def validate_database_connection(environment: Environment) -> None:
    """Run a trivial query against the environment's database.

    Raises:
        ConfigurationError: If the environment carries no usable database.
        ConnectionError: If the query fails.
    """
    db = environment.db
    if db is None or not callable(getattr(db, "execute", None)):
        raise ConfigurationError("Database adapter is not configured")

    try:
        await db.execute("SELECT 1 AS connection_test")
    except (AdapterError, ExecutionError) as e:
        logger.error("database_connection_check_failed", error=str(e))
        raise ConnectionError(f"Failed to connect to database: {e}") from e
    logger.info("database_connection_check_succeeded")


def is_vercel_environment(environ: Mapping[str, str] | None = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("VERCEL") == "1" or environ.get("DEPLOYMENT_PLATFORM") == "vercel"


def detect_deployment_platform(settings: Settings) -> DeploymentPlatform:
    if settings.cf_pages:
        return DeploymentPlatform.CLOUDFLARE
    if settings.vercel == "1" or settings.deployment_platform == "vercel":
        return DeploymentPlatform.VERCEL
    return DeploymentPlatform.LOCAL


def error_payload(exc: BaseException, *, debug: bool = False) -> dict[str, Any]:
    """JSON-ready error body for the HTTP layer.

    Stack traces and details are only included when *debug* is set.
    """
    payload: dict[str, Any] = {
        "error": "Server error",
        "message": str(exc) or "Internal server error",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if debug:
        payload["type"] = type(exc).__name__
        payload["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return payload
