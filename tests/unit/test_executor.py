"""Tests for the SQLAlchemy read-only executor."""

from __future__ import annotations

from sqlalchemy import text

from askdb.execution import SQLAlchemyExecutor
from askdb.execution.sqlalchemy import _normalize_postgresql_url


class TestSQLAlchemyExecutor:
    """Tests for running SQL through SQLAlchemy."""

    def test_rows_as_dicts(self, sqlite_executor: SQLAlchemyExecutor) -> None:
        rows = sqlite_executor("SELECT id, city FROM users ORDER BY id")

        assert rows == [
            {"id": 1, "city": "Tokyo"},
            {"id": 2, "city": "Lisbon"},
            {"id": 3, "city": "Tokyo"},
        ]

    def test_empty_result(self, sqlite_executor: SQLAlchemyExecutor) -> None:
        assert sqlite_executor("SELECT * FROM users WHERE city = 'Oslo'") == []

    def test_changes_are_rolled_back(self, sqlite_executor: SQLAlchemyExecutor) -> None:
        """Nothing the executor runs is ever committed."""
        assert sqlite_executor("DELETE FROM users") == []

        with sqlite_executor.engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        assert count == 3

    def test_not_postgresql(self, sqlite_executor: SQLAlchemyExecutor) -> None:
        assert not sqlite_executor.is_postgresql

    def test_from_url(self) -> None:
        with SQLAlchemyExecutor("sqlite:///:memory:") as executor:
            assert executor("SELECT 1 AS one") == [{"one": 1}]


class TestNormalizePostgresqlUrl:
    """Tests for driver selection on PostgreSQL URLs."""

    def test_plain_postgresql(self) -> None:
        assert (
            _normalize_postgresql_url("postgresql://u@localhost/db")
            == "postgresql+psycopg://u@localhost/db"
        )

    def test_explicit_driver_kept(self) -> None:
        url = "postgresql+asyncpg://u@localhost/db"
        assert _normalize_postgresql_url(url) == url

    def test_other_dialects_untouched(self) -> None:
        assert _normalize_postgresql_url("sqlite:///:memory:") == "sqlite:///:memory:"
