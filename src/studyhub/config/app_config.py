"""Application configuration loader.

Loads centralized configuration from config/studyhub.yaml (or the file
named by STUDYHUB_CONFIG) and falls back to built-in defaults.

Secrets never live in the YAML file; the file only names the
environment variables that hold them.

Usage:
    from studyhub.config.app_config import load_app_config

    config = load_app_config()
    config.backend.kind  # "sqlite" | "supabase"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/studyhub.yaml")
CONFIG_ENV_VAR = "STUDYHUB_CONFIG"

# Only used when the configured secret variable is unset
DEV_JWT_SECRET = "studyhub-dev-secret-change-me"

BackendKind = Literal["sqlite", "supabase"]


@dataclass
class BackendConfig:
    """Which data/auth service the app talks to."""

    kind: BackendKind = "sqlite"
    sqlite_path: str = "db/studyhub.db"
    supabase_url_env: str = "SUPABASE_URL"
    supabase_key_env: str = "SUPABASE_SERVICE_KEY"

    def get_supabase_url(self) -> str | None:
        """Get Supabase project URL from environment variable."""
        return os.environ.get(self.supabase_url_env)

    def get_supabase_key(self) -> str | None:
        """Get Supabase service role key from environment variable."""
        return os.environ.get(self.supabase_key_env)


@dataclass
class AuthConfig:
    """Token and password-reset settings."""

    jwt_secret_env: str = "STUDYHUB_JWT_SECRET"
    access_token_ttl_minutes: int = 60
    client_url: str = "http://localhost:5173"

    def get_jwt_secret(self) -> str:
        """Get the token signing secret, falling back to a dev value."""
        secret = os.environ.get(self.jwt_secret_env)
        if secret:
            return secret
        logger.warning("jwt_secret_missing", env_var=self.jwt_secret_env)
        return DEV_JWT_SECRET


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "backend": {
            "kind": "sqlite",
            "sqlite_path": "db/studyhub.db",
            "supabase_url_env": "SUPABASE_URL",
            "supabase_key_env": "SUPABASE_SERVICE_KEY",
        },
        "auth": {
            "jwt_secret_env": "STUDYHUB_JWT_SECRET",
            "access_token_ttl_minutes": 60,
            "client_url": "http://localhost:5173",
        },
        "server": {
            "host": "127.0.0.1",
            "port": 3000,
            "cors_origins": ["*"],
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    backend_data = {**defaults["backend"], **(data.get("backend") or {})}
    kind = backend_data["kind"]
    if kind not in ("sqlite", "supabase"):
        raise ValueError(f"Unknown backend kind '{kind}' (expected sqlite or supabase)")
    backend = BackendConfig(
        kind=kind,
        sqlite_path=str(backend_data["sqlite_path"]),
        supabase_url_env=backend_data["supabase_url_env"],
        supabase_key_env=backend_data["supabase_key_env"],
    )

    auth_data = {**defaults["auth"], **(data.get("auth") or {})}
    auth = AuthConfig(
        jwt_secret_env=auth_data["jwt_secret_env"],
        access_token_ttl_minutes=int(auth_data["access_token_ttl_minutes"]),
        client_url=auth_data["client_url"].rstrip("/"),
    )

    server_data = {**defaults["server"], **(data.get("server") or {})}
    server = ServerConfig(
        host=server_data["host"],
        port=int(server_data["port"]),
        cors_origins=list(server_data["cors_origins"]),
    )

    return AppConfig(backend=backend, auth=auth, server=server)


def get_config_path() -> Path:
    """Resolve the config file path, honouring STUDYHUB_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_FILE


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    config_path = get_config_path()
    data: dict[str, Any]

    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
