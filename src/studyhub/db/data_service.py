"""Data service capability shared by every request handler.

A DataService is the only way handlers reach persistence and identity.
It is injected into the app at construction time so tests can swap in
a local implementation.

Provides:
- Filter / AnyOf / Order value objects for building queries
- DataService and AuthService protocols
- AuthUser / AuthSession records returned by the auth capability
- DataServiceError / AuthError raised by implementations
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Sequence, Union

FilterOp = Literal["eq", "neq", "in", "gte", "lte", "contains"]

# =============================================================================
# QUERY VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True)
class Filter:
    """A single column condition."""

    column: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class AnyOf:
    """OR group: a row matches if any of the filters match."""

    filters: tuple[Filter, ...]


@dataclass(frozen=True)
class Order:
    """Ordering clause."""

    column: str
    descending: bool = False


Condition = Union[Filter, AnyOf]


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def contains(column: str, values: Sequence[Any]) -> Filter:
    """List column contains every one of `values`."""
    return Filter(column, "contains", list(values))


def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(tuple(filters))


def desc(column: str) -> Order:
    return Order(column, descending=True)


def asc(column: str) -> Order:
    return Order(column, descending=False)


# =============================================================================
# AUTH RECORDS
# =============================================================================


@dataclass
class AuthUser:
    """Identity as known by the auth provider."""

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "metadata": self.metadata}


@dataclass
class AuthSession:
    """Tokens issued on sign-in or refresh."""

    access_token: str
    refresh_token: str
    user: AuthUser
    expires_in: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user": self.user.to_dict(),
        }
        if self.expires_in is not None:
            result["expires_in"] = self.expires_in
        return result


# =============================================================================
# ERRORS
# =============================================================================


class DataServiceError(Exception):
    """The data service failed to execute a query."""

    def __init__(self, message: str, table: str | None = None, operation: str | None = None):
        self.table = table
        self.operation = operation
        super().__init__(message)


class ConflictError(DataServiceError):
    """A write violated a uniqueness constraint."""

    pass


class AuthError(Exception):
    """Authentication failed (bad credentials, invalid token, ...)."""

    pass


# =============================================================================
# PROTOCOLS
# =============================================================================


class AuthService(Protocol):
    """Identity capability of the external service."""

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser: ...

    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_out(self, access_token: str) -> None: ...

    def refresh(self, refresh_token: str) -> AuthSession: ...

    def get_user(self, access_token: str) -> AuthUser: ...

    def send_password_reset(self, email: str, redirect_to: str) -> None: ...

    def update_password(self, access_token: str, new_password: str) -> None: ...


class DataService(Protocol):
    """Tables capability of the external service."""

    auth: AuthService

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Condition] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]: ...

    def update(
        self, table: str, values: dict[str, Any], filters: Sequence[Condition]
    ) -> list[dict[str, Any]]: ...

    def delete(self, table: str, filters: Sequence[Condition]) -> int: ...


def select_one(
    service: DataService,
    table: str,
    filters: Sequence[Condition],
    columns: str = "*",
) -> dict[str, Any] | None:
    """Return the first row matching `filters`, or None."""
    rows = service.select(table, columns=columns, filters=filters, limit=1)
    return rows[0] if rows else None
