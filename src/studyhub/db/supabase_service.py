"""Supabase-backed data service.

Adapter from the DataService protocol onto a supabase-py Client
created with the project's service-role key. Library and network
failures surface as DataServiceError / AuthError.
"""

from __future__ import annotations

from typing import Any, Sequence

import structlog
from supabase import Client, create_client

from studyhub.config.app_config import BackendConfig
from studyhub.db.data_service import (
    AnyOf,
    AuthError,
    AuthSession,
    AuthUser,
    Condition,
    ConflictError,
    DataServiceError,
    Filter,
    Order,
)

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


def _or_expression(group: AnyOf) -> str:
    """Render an OR group in PostgREST `or=(...)` syntax."""
    parts = []
    for f in group.filters:
        value = f.value
        if f.op == "in":
            value = "(" + ",".join(str(v) for v in value) + ")"
        elif f.op == "contains":
            value = "{" + ",".join(str(v) for v in value) + "}"
            parts.append(f"{f.column}.cs.{value}")
            continue
        elif isinstance(value, bool):
            value = "true" if value else "false"
        parts.append(f"{f.column}.{f.op}.{value}")
    return ",".join(parts)


def _apply_filters(query: Any, filters: Sequence[Condition]) -> Any:
    for condition in filters:
        if isinstance(condition, AnyOf):
            query = query.or_(_or_expression(condition))
            continue
        if condition.op == "in":
            query = query.in_(condition.column, list(condition.value))
        elif condition.op == "eq" and condition.value is None:
            query = query.is_(condition.column, "null")
        else:
            query = getattr(query, condition.op)(condition.column, condition.value)
    return query


class SupabaseDataService:
    """DataService implementation over a supabase-py Client."""

    def __init__(self, client: Client):
        self._client = client
        self.auth = SupabaseAuthService(client)

    @classmethod
    def from_config(cls, config: BackendConfig) -> SupabaseDataService:
        url = config.get_supabase_url()
        key = config.get_supabase_key()
        if not url or not key:
            raise DataServiceError(
                f"Supabase backend needs {config.supabase_url_env} and {config.supabase_key_env} set"
            )
        logger.info("supabase.client_created", url=url)
        return cls(create_client(url, key))

    def _execute(self, query: Any, table: str, operation: str) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as exc:
            if getattr(exc, "code", None) == UNIQUE_VIOLATION:
                raise ConflictError(str(exc), table, operation) from exc
            raise DataServiceError(str(exc), table, operation) from exc
        return list(response.data or [])

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Condition] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = _apply_filters(self._client.table(table).select(columns), filters)
        for o in order:
            query = query.order(o.column, desc=o.descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query, table, "select")

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = self._execute(self._client.table(table).insert(row), table, "insert")
        if not rows:
            raise DataServiceError("Insert returned no row", table, "insert")
        return rows[0]

    def update(
        self, table: str, values: dict[str, Any], filters: Sequence[Condition]
    ) -> list[dict[str, Any]]:
        query = _apply_filters(self._client.table(table).update(values), filters)
        return self._execute(query, table, "update")

    def delete(self, table: str, filters: Sequence[Condition]) -> int:
        query = _apply_filters(self._client.table(table).delete(), filters)
        return len(self._execute(query, table, "delete"))


class SupabaseAuthService:
    """AuthService implementation over the Supabase auth API."""

    def __init__(self, client: Client):
        self._client = client

    @staticmethod
    def _to_user(user: Any) -> AuthUser:
        return AuthUser(
            id=str(user.id),
            email=user.email or "",
            metadata=dict(getattr(user, "user_metadata", None) or {}),
        )

    def _to_session(self, response: Any) -> AuthSession:
        session = response.session
        if session is None or response.user is None:
            raise AuthError("No session returned")
        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            user=self._to_user(response.user),
            expires_in=getattr(session, "expires_in", None),
        )

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser:
        try:
            response = self._client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata}}
            )
        except Exception as exc:
            raise AuthError(str(exc)) from exc
        if response.user is None:
            raise AuthError("Sign up returned no user")
        return self._to_user(response.user)

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:
            raise AuthError(str(exc)) from exc
        return self._to_session(response)

    def sign_out(self, access_token: str) -> None:
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as exc:
            raise AuthError(str(exc)) from exc

    def refresh(self, refresh_token: str) -> AuthSession:
        try:
            response = self._client.auth.refresh_session(refresh_token)
        except Exception as exc:
            raise AuthError("Invalid refresh token") from exc
        return self._to_session(response)

    def get_user(self, access_token: str) -> AuthUser:
        try:
            response = self._client.auth.get_user(access_token)
        except Exception as exc:
            raise AuthError(str(exc)) from exc
        if response is None or response.user is None:
            raise AuthError("Invalid token")
        return self._to_user(response.user)

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        try:
            self._client.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except Exception as exc:
            raise DataServiceError(str(exc), operation="password_reset") from exc

    def update_password(self, access_token: str, new_password: str) -> None:
        user = self.get_user(access_token)
        try:
            self._client.auth.admin.update_user_by_id(user.id, {"password": new_password})
        except Exception as exc:
            raise DataServiceError(str(exc), operation="update_password") from exc
