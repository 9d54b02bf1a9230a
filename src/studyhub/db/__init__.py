"""Data access layer.

Provides:
- DataService / AuthService capability protocols and query helpers
- SQLite implementation (local development and tests)
- Supabase implementation (hosted deployment)
- build_data_service(): pick an implementation from AppConfig
"""

from pathlib import Path

from studyhub.config.app_config import AppConfig
from studyhub.db.data_service import (
    AuthError,
    AuthService,
    AuthSession,
    AuthUser,
    ConflictError,
    DataService,
    DataServiceError,
)
from studyhub.db.database import get_db, init_db


def build_data_service(config: AppConfig) -> DataService:
    """Create the data service selected by `config.backend.kind`."""
    if config.backend.kind == "supabase":
        from studyhub.db.supabase_service import SupabaseDataService

        return SupabaseDataService.from_config(config.backend)

    from studyhub.db.sqlite_service import SqliteDataService

    return SqliteDataService(
        Path(config.backend.sqlite_path),
        jwt_secret=config.auth.get_jwt_secret(),
        access_token_ttl_minutes=config.auth.access_token_ttl_minutes,
    )


__all__ = [
    "AuthError",
    "AuthService",
    "AuthSession",
    "AuthUser",
    "ConflictError",
    "DataService",
    "DataServiceError",
    "build_data_service",
    "get_db",
    "init_db",
]
