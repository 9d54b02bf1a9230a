"""Tests for the Supabase adapter using a mocked client."""

from unittest.mock import MagicMock

import pytest

from studyhub.config.app_config import BackendConfig
from studyhub.db.data_service import (
    AuthError,
    ConflictError,
    DataServiceError,
    any_of,
    contains,
    desc,
    eq,
    gte,
    in_,
)
from studyhub.db.supabase_service import SupabaseDataService, _or_expression

QUERY_METHODS = [
    "select", "insert", "update", "delete",
    "eq", "neq", "in_", "gte", "lte", "contains", "or_", "is_",
    "order", "limit",
]


@pytest.fixture
def query():
    """Chainable query builder mock."""
    builder = MagicMock()
    for name in QUERY_METHODS:
        getattr(builder, name).return_value = builder
    builder.execute.return_value = MagicMock(data=[{"id": "row-1"}])
    return builder


@pytest.fixture
def client(query):
    mock_client = MagicMock()
    mock_client.table.return_value = query
    return mock_client


@pytest.fixture
def service(client):
    return SupabaseDataService(client)


class TestTables:
    """Query translation and error wrapping."""

    def test_select_applies_filters_order_and_limit(self, service, client, query):
        rows = service.select(
            "quizzes",
            columns="id, title",
            filters=[eq("class_id", "c1"), gte("created_at", "2024-01-01"), in_("id", ["a", "b"])],
            order=[desc("created_at")],
            limit=5,
        )

        assert rows == [{"id": "row-1"}]
        client.table.assert_called_with("quizzes")
        query.select.assert_called_once_with("id, title")
        query.eq.assert_called_once_with("class_id", "c1")
        query.gte.assert_called_once_with("created_at", "2024-01-01")
        query.in_.assert_called_once_with("id", ["a", "b"])
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(5)

    def test_eq_none_uses_is_null(self, service, query):
        service.select("users", filters=[eq("phone", None)])
        query.is_.assert_called_once_with("phone", "null")

    def test_any_of_uses_or(self, service, query):
        service.select(
            "learning_resources",
            filters=[any_of(eq("user_id", "u1"), eq("is_public", True))],
        )
        query.or_.assert_called_once_with("user_id.eq.u1,is_public.eq.true")

    def test_contains(self, service, query):
        service.select("learning_resources", filters=[contains("tags", ["math"])])
        query.contains.assert_called_once_with("tags", ["math"])

    def test_insert_returns_first_row(self, service, query):
        assert service.insert("goals", {"title": "Read"}) == {"id": "row-1"}
        query.insert.assert_called_once_with({"title": "Read"})

    def test_insert_without_row_raises(self, service, query):
        query.execute.return_value = MagicMock(data=[])
        with pytest.raises(DataServiceError):
            service.insert("goals", {"title": "Read"})

    def test_delete_returns_count(self, service, query):
        query.execute.return_value = MagicMock(data=[{"id": "1"}, {"id": "2"}])
        assert service.delete("flashcards", [eq("flashcard_set_id", "s1")]) == 2

    def test_unique_violation_is_conflict(self, service, query):
        error = Exception("duplicate key value violates unique constraint")
        error.code = "23505"
        query.execute.side_effect = error

        with pytest.raises(ConflictError):
            service.insert("class_students", {"class_id": "c1", "user_id": "u1"})

    def test_other_failures_are_data_service_errors(self, service, query):
        query.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DataServiceError) as exc_info:
            service.select("classes")

        assert not isinstance(exc_info.value, ConflictError)
        assert exc_info.value.table == "classes"
        assert exc_info.value.operation == "select"


class TestOrExpression:
    def test_in_and_contains(self):
        expression = _or_expression(any_of(in_("id", ["a", "b"]), contains("tags", ["x"])))
        assert expression == "id.in.(a,b),tags.cs.{x}"


class TestAuth:
    """Auth API mapping."""

    def test_sign_in_maps_session(self, service, client):
        client.auth.sign_in_with_password.return_value = MagicMock(
            session=MagicMock(access_token="access", refresh_token="refresh", expires_in=3600),
            user=MagicMock(id="u1", email="a@b.com", user_metadata={"role": "student"}),
        )

        session = service.auth.sign_in("a@b.com", "secret1")

        assert session.access_token == "access"
        assert session.refresh_token == "refresh"
        assert session.user.id == "u1"
        assert session.user.email == "a@b.com"
        assert session.user.metadata == {"role": "student"}

    def test_sign_in_failure_is_auth_error(self, service, client):
        client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        with pytest.raises(AuthError, match="Invalid login credentials"):
            service.auth.sign_in("a@b.com", "wrong")

    def test_sign_up_passes_metadata(self, service, client):
        client.auth.sign_up.return_value = MagicMock(
            user=MagicMock(id="u2", email="c@d.com", user_metadata={"first_name": "C"})
        )

        user = service.auth.sign_up("c@d.com", "secret1", {"first_name": "C"})

        assert user.id == "u2"
        client.auth.sign_up.assert_called_once_with(
            {"email": "c@d.com", "password": "secret1", "options": {"data": {"first_name": "C"}}}
        )

    def test_get_user_without_user_is_auth_error(self, service, client):
        client.auth.get_user.return_value = None
        with pytest.raises(AuthError):
            service.auth.get_user("token")

    def test_refresh_failure(self, service, client):
        client.auth.refresh_session.side_effect = Exception("expired")
        with pytest.raises(AuthError, match="Invalid refresh token"):
            service.auth.refresh("bad")

    def test_password_reset_redirect(self, service, client):
        service.auth.send_password_reset("a@b.com", "http://client.test/reset-password")
        client.auth.reset_password_for_email.assert_called_once_with(
            "a@b.com", {"redirect_to": "http://client.test/reset-password"}
        )


class TestFromConfig:
    def test_missing_environment_raises(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)

        with pytest.raises(DataServiceError, match="SUPABASE_URL"):
            SupabaseDataService.from_config(BackendConfig(kind="supabase"))
