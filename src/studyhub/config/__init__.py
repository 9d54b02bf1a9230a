"""Configuration package for studyhub."""

from studyhub.config.app_config import (
    AppConfig,
    AuthConfig,
    BackendConfig,
    ServerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "BackendConfig",
    "ServerConfig",
    "clear_config_cache",
    "load_app_config",
]
