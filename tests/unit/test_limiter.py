"""Tests for the row-count safety limiter."""

from __future__ import annotations

import pytest

from askdb.query.limiter import DEFAULT_MAX_ROWS, add_safety_limits


class TestAddSafetyLimits:
    """Tests for add_safety_limits."""

    def test_appends_limit(self) -> None:
        assert add_safety_limits("SELECT * FROM t", 500) == "SELECT * FROM t LIMIT 500"

    def test_existing_limit_unchanged(self) -> None:
        sql = "SELECT * FROM t LIMIT 10"
        assert add_safety_limits(sql, 500) == sql

    def test_count_query_unchanged(self) -> None:
        sql = "SELECT COUNT(*) FROM t"
        assert add_safety_limits(sql, 500) == sql

    def test_trailing_semicolon_stripped(self) -> None:
        assert add_safety_limits("SELECT * FROM t;", 500) == "SELECT * FROM t LIMIT 500"

    def test_surrounding_whitespace_trimmed(self) -> None:
        assert add_safety_limits("  SELECT * FROM t ;\n", 5) == "SELECT * FROM t  LIMIT 5"

    def test_lowercase_limit_detected(self) -> None:
        sql = "select * from t limit 3"
        assert add_safety_limits(sql, 500) == sql

    def test_count_anywhere_leaves_query_unbounded(self) -> None:
        """A COUNT( in a subquery is enough to skip the limit."""
        sql = "SELECT name, (SELECT count(*) FROM orders o WHERE o.user_id = u.id) FROM users u"
        assert add_safety_limits(sql, 500) == sql

    def test_limit_needs_surrounding_spaces(self) -> None:
        """A newline before LIMIT is not recognized, so a second limit is appended."""
        sql = "SELECT * FROM t\nLIMIT 10"
        assert add_safety_limits(sql, 500) == "SELECT * FROM t\nLIMIT 10 LIMIT 500"

    def test_default_max_rows(self) -> None:
        assert add_safety_limits("SELECT 1") == f"SELECT 1 LIMIT {DEFAULT_MAX_ROWS}"

    @pytest.mark.parametrize("max_rows", [0, -1, 2.5, True, "100"])
    def test_invalid_max_rows(self, max_rows: object) -> None:
        with pytest.raises(ValueError, match="max_rows must be a positive integer"):
            add_safety_limits("SELECT * FROM t", max_rows)  # type: ignore[arg-type]
