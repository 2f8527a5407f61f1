"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class AdapterMode(Enum):
    """Which database an Environment ended up with."""

    REAL = "real"
    FALLBACK = "fallback"


class EnvironmentState(Enum):
    UNCONFIGURED = "unconfigured"
    PROBING = "probing"
    READY = "ready"


class DeploymentPlatform(Enum):
    CLOUDFLARE = "cloudflare"
    VERCEL = "vercel"
    LOCAL = "local"
