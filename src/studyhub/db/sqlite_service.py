"""SQLite-backed data service.

Local stand-in for the hosted database/auth provider. Every call opens
its own connection through get_db(), so instances are safe to share
across request threads.
"""

from __future__ import annotations

import hashlib
import json
import secrets
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Sequence

import jwt
import structlog
from werkzeug.security import check_password_hash, generate_password_hash

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
from studyhub.db.database import BOOL_COLUMNS, JSON_COLUMNS, get_db, init_db
from studyhub.utils.validators import now_iso

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
RECOVERY_TOKEN_TTL_MINUTES = 15

_SQL_OPS = {"eq": "=", "neq": "!=", "gte": ">=", "lte": "<="}


def _hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


# =============================================================================
# TABLES
# =============================================================================


class SqliteDataService:
    """DataService implementation over a single SQLite file."""

    def __init__(
        self,
        db_path: Path,
        jwt_secret: str,
        access_token_ttl_minutes: int = 60,
    ):
        self.db_path = Path(db_path)
        init_db(self.db_path)
        self._columns: dict[str, set[str]] = self._load_columns()
        self.auth = SqliteAuthService(self, jwt_secret, access_token_ttl_minutes)

    def _load_columns(self) -> dict[str, set[str]]:
        """Read table/column names once so queries can be validated."""
        with get_db(self.db_path) as conn:
            tables = [
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
                )
            ]
            return {
                table: {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
                for table in tables
            }

    def _check_table(self, table: str) -> set[str]:
        columns = self._columns.get(table)
        if columns is None:
            raise DataServiceError(f"Unknown table '{table}'", table=table)
        return columns

    def _check_column(self, table: str, column: str) -> str:
        if column not in self._check_table(table):
            raise DataServiceError(f"Unknown column '{table}.{column}'", table=table)
        return column

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    @staticmethod
    def _encode_value(column: str, value: Any) -> Any:
        if column in JSON_COLUMNS and value is not None:
            return json.dumps(value)
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _decode_row(row: sqlite3.Row) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in row.keys():
            value = row[key]
            if key in JSON_COLUMNS and isinstance(value, str):
                value = json.loads(value)
            elif key in BOOL_COLUMNS and value is not None:
                value = bool(value)
            result[key] = value
        return result

    def _filter_sql(self, table: str, condition: Condition) -> tuple[str, list[Any]]:
        """Translate one condition into a SQL fragment and parameters."""
        if isinstance(condition, AnyOf):
            parts = [self._filter_sql(table, f) for f in condition.filters]
            if not parts:
                return "1 = 0", []
            sql = " OR ".join(f"({p[0]})" for p in parts)
            params = [param for p in parts for param in p[1]]
            return sql, params

        column = self._check_column(table, condition.column)

        if condition.op in _SQL_OPS:
            if condition.value is None and condition.op in ("eq", "neq"):
                return f"{column} IS {'NOT ' if condition.op == 'neq' else ''}NULL", []
            return (
                f"{column} {_SQL_OPS[condition.op]} ?",
                [self._encode_value(column, condition.value)],
            )

        if condition.op == "in":
            values = list(condition.value)
            if not values:
                return "1 = 0", []
            placeholders = ", ".join("?" for _ in values)
            return f"{column} IN ({placeholders})", [self._encode_value(column, v) for v in values]

        if condition.op == "contains":
            values = list(condition.value)
            if not values:
                return "1 = 1", []
            clause = " AND ".join(
                f"EXISTS (SELECT 1 FROM json_each({table}.{column}) WHERE json_each.value = ?)"
                for _ in values
            )
            return clause, values

        raise DataServiceError(f"Unsupported filter op '{condition.op}'", table=table)

    def _where(self, table: str, filters: Sequence[Condition]) -> tuple[str, list[Any]]:
        if not filters:
            return "", []
        parts = [self._filter_sql(table, f) for f in filters]
        sql = " WHERE " + " AND ".join(f"({p[0]})" for p in parts)
        params = [param for p in parts for param in p[1]]
        return sql, params

    def _select_columns(self, table: str, columns: str) -> str:
        if columns.strip() == "*":
            return "*"
        names = [c.strip() for c in columns.split(",") if c.strip()]
        return ", ".join(self._check_column(table, c) for c in names)

    # -------------------------------------------------------------------------
    # DataService
    # -------------------------------------------------------------------------

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Condition] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self._check_table(table)
        where, params = self._where(table, filters)
        sql = f"SELECT {self._select_columns(table, columns)} FROM {table}{where}"

        if order:
            clauses = [
                f"{self._check_column(table, o.column)} {'DESC' if o.descending else 'ASC'}"
                for o in order
            ]
            # Insertion order breaks timestamp ties
            clauses.append(f"rowid {'DESC' if order[-1].descending else 'ASC'}")
            sql += " ORDER BY " + ", ".join(clauses)

        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self._connection(table, "select") as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._decode_row(r) for r in rows]

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        columns = self._check_table(table)
        values = dict(row)
        values.setdefault("id", str(uuid.uuid4()))
        if "created_at" in columns:
            values.setdefault("created_at", now_iso())

        names = [self._check_column(table, c) for c in values]
        placeholders = ", ".join("?" for _ in names)
        params = [self._encode_value(c, values[c]) for c in names]

        with self._connection(table, "insert") as conn:
            conn.execute(
                f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders})", params
            )
            stored = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (values["id"],)).fetchone()

        logger.debug("sqlite.inserted", table=table, id=values["id"])
        return self._decode_row(stored)

    def update(
        self, table: str, values: dict[str, Any], filters: Sequence[Condition]
    ) -> list[dict[str, Any]]:
        self._check_table(table)
        if not values:
            return self.select(table, filters=filters)

        names = [self._check_column(table, c) for c in values]
        assignments = ", ".join(f"{c} = ?" for c in names)
        params = [self._encode_value(c, values[c]) for c in names]
        where, where_params = self._where(table, filters)

        with self._connection(table, "update") as conn:
            ids = [
                r["id"] for r in conn.execute(f"SELECT id FROM {table}{where}", where_params)
            ]
            if not ids:
                return []
            placeholders = ", ".join("?" for _ in ids)
            conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id IN ({placeholders})",
                params + ids,
            )
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE id IN ({placeholders})", ids
            ).fetchall()

        return [self._decode_row(r) for r in rows]

    def delete(self, table: str, filters: Sequence[Condition]) -> int:
        self._check_table(table)
        where, params = self._where(table, filters)
        with self._connection(table, "delete") as conn:
            cursor = conn.execute(f"DELETE FROM {table}{where}", params)
            deleted = cursor.rowcount
        logger.debug("sqlite.deleted", table=table, count=deleted)
        return deleted

    @contextmanager
    def _connection(self, table: str, operation: str) -> Iterator[sqlite3.Connection]:
        """get_db() that reports sqlite3 failures as DataServiceError."""
        try:
            with get_db(self.db_path) as conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc):
                raise ConflictError(str(exc), table, operation) from exc
            raise DataServiceError(str(exc), table, operation) from exc
        except sqlite3.Error as exc:
            raise DataServiceError(str(exc), table, operation) from exc


# =============================================================================
# AUTH
# =============================================================================


class SqliteAuthService:
    """AuthService implementation: werkzeug password hashes, PyJWT access tokens."""

    def __init__(self, tables: SqliteDataService, jwt_secret: str, access_token_ttl_minutes: int):
        self._tables = tables
        self._secret = jwt_secret
        self._ttl = timedelta(minutes=access_token_ttl_minutes)

    # Token helpers

    def _encode_access_token(self, user: AuthUser, ttl: timedelta, purpose: str = "access") -> str:
        issued = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "purpose": purpose,
            "iat": int(issued.timestamp()),
            "exp": int((issued + ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def _issue_session(self, user: AuthUser) -> AuthSession:
        refresh_token = secrets.token_urlsafe(32)
        self._tables.insert(
            "auth_refresh_tokens",
            {"token_hash": _hash_token(refresh_token), "user_id": user.id, "revoked": False},
        )
        return AuthSession(
            access_token=self._encode_access_token(user, self._ttl),
            refresh_token=refresh_token,
            user=user,
            expires_in=int(self._ttl.total_seconds()),
        )

    def _user_by_id(self, user_id: str) -> AuthUser | None:
        rows = self._tables.select("auth_users", filters=[Filter("id", "eq", user_id)], limit=1)
        return _to_auth_user(rows[0]) if rows else None

    # AuthService

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser:
        email = email.strip().lower()
        try:
            row = self._tables.insert(
                "auth_users",
                {
                    "email": email,
                    "password_hash": generate_password_hash(password),
                    "metadata": metadata,
                },
            )
        except ConflictError as exc:
            raise AuthError("User already registered") from exc

        logger.info("auth.signed_up", user_id=row["id"])
        return _to_auth_user(row)

    def sign_in(self, email: str, password: str) -> AuthSession:
        rows = self._tables.select(
            "auth_users", filters=[Filter("email", "eq", email.strip().lower())], limit=1
        )
        if not rows or not check_password_hash(rows[0]["password_hash"], password):
            raise AuthError("Invalid login credentials")

        user = _to_auth_user(rows[0])
        logger.info("auth.signed_in", user_id=user.id)
        return self._issue_session(user)

    def sign_out(self, access_token: str) -> None:
        user = self.get_user(access_token)
        self._tables.update(
            "auth_refresh_tokens",
            {"revoked": True},
            [Filter("user_id", "eq", user.id)],
        )
        logger.info("auth.signed_out", user_id=user.id)

    def refresh(self, refresh_token: str) -> AuthSession:
        rows = self._tables.select(
            "auth_refresh_tokens",
            filters=[Filter("token_hash", "eq", _hash_token(refresh_token))],
            limit=1,
        )
        if not rows or rows[0]["revoked"]:
            raise AuthError("Invalid refresh token")

        # Rotate: the presented token can only be used once
        self._tables.update("auth_refresh_tokens", {"revoked": True}, [Filter("id", "eq", rows[0]["id"])])

        user = self._user_by_id(rows[0]["user_id"])
        if user is None:
            raise AuthError("Invalid refresh token")
        return self._issue_session(user)

    def get_user(self, access_token: str) -> AuthUser:
        try:
            payload = jwt.decode(access_token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token has expired") from exc
        except jwt.PyJWTError as exc:
            raise AuthError("Invalid token") from exc

        user = self._user_by_id(str(payload.get("sub", "")))
        if user is None:
            raise AuthError("User not found")
        return user

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        rows = self._tables.select(
            "auth_users", filters=[Filter("email", "eq", email.strip().lower())], limit=1
        )
        if not rows:
            # Same outcome as success so addresses can't be probed
            logger.info("auth.password_reset_unknown_email")
            return

        user = _to_auth_user(rows[0])
        token = self._encode_access_token(
            user, timedelta(minutes=RECOVERY_TOKEN_TTL_MINUTES), purpose="recovery"
        )
        # No mail delivery in the local backend
        logger.info(
            "auth.password_reset_link",
            user_id=user.id,
            link=f"{redirect_to}#access_token={token}&type=recovery",
        )

    def update_password(self, access_token: str, new_password: str) -> None:
        user = self.get_user(access_token)
        self._tables.update(
            "auth_users",
            {"password_hash": generate_password_hash(new_password)},
            [Filter("id", "eq", user.id)],
        )
        logger.info("auth.password_updated", user_id=user.id)


def _to_auth_user(row: dict[str, Any]) -> AuthUser:
    return AuthUser(id=row["id"], email=row["email"], metadata=row.get("metadata") or {})
