"""Row-count safety limits for validated queries."""

from __future__ import annotations

DEFAULT_MAX_ROWS = 1000


def add_safety_limits(sql: str, max_rows: int = DEFAULT_MAX_ROWS) -> str:
    """Append a LIMIT clause to a validated query unless it is already bounded.

    Queries that already contain `` LIMIT `` or a ``COUNT(`` call are returned
    unchanged. Otherwise a single trailing semicolon is dropped and
    ``LIMIT <max_rows>`` is appended. Only call this on SQL that passed
    validation.

    Args:
        sql: Validated SQL query
        max_rows: Maximum number of rows the query may return

    Returns:
        SQL guaranteed to carry a row-count bound

    Raises:
        ValueError: If max_rows is not a positive integer

    Example:
        >>> add_safety_limits("SELECT * FROM orders;", 500)
        'SELECT * FROM orders LIMIT 500'
    """
    if isinstance(max_rows, bool) or not isinstance(max_rows, int) or max_rows < 1:
        raise ValueError(f"max_rows must be a positive integer, got {max_rows!r}")

    upper_sql = sql.upper()
    if " LIMIT " in upper_sql or "COUNT(" in upper_sql:
        return sql

    clean_sql = sql.strip()
    if clean_sql.endswith(";"):
        clean_sql = clean_sql[:-1]

    return f"{clean_sql} LIMIT {max_rows}"
