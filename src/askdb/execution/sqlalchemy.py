"""Read-only SQL executor backed by a SQLAlchemy engine."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, create_engine, text

logger = logging.getLogger(__name__)


def _normalize_postgresql_url(url: str) -> str:
    """Normalize PostgreSQL URL to use psycopg3 driver.

    SQLAlchemy defaults to psycopg2 for 'postgresql://' URLs.
    This converts to 'postgresql+psycopg://' to use psycopg3.
    """
    if "postgresql+" in url:
        return url

    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)

    return url


class SQLAlchemyExecutor:
    """Runs a SQL string and returns rows as dicts.

    Each call opens a connection, runs exactly the given statement and rolls
    the transaction back; nothing is ever committed. On PostgreSQL the
    transaction is additionally marked READ ONLY and can carry a statement
    timeout.

    Example:
        >>> executor = SQLAlchemyExecutor("postgresql://readonly@localhost/shop")
        >>> result = await ask_database(question, schema, executor, model=model)
    """

    def __init__(
        self,
        engine: Engine | str,
        statement_timeout_ms: int | None = None,
        echo: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            engine: SQLAlchemy Engine or database URL
            statement_timeout_ms: Per-statement timeout (PostgreSQL only)
            echo: Whether to echo SQL statements when creating an engine from a URL
        """
        if isinstance(engine, str):
            self._owns_engine = True
            engine = create_engine(
                _normalize_postgresql_url(engine),
                echo=echo,
                pool_pre_ping=True,  # Verify connections before use
            )
        else:
            self._owns_engine = False

        self._engine = engine
        self._statement_timeout_ms = statement_timeout_ms

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def is_postgresql(self) -> bool:
        return self._engine.dialect.name == "postgresql"

    def __call__(self, sql: str) -> list[dict[str, Any]]:
        """Execute the statement and return its rows.

        Args:
            sql: SQL to run, exactly as given

        Returns:
            Rows as a list of column-name → value dicts
        """
        with self._engine.connect() as conn:
            try:
                if self.is_postgresql:
                    conn.execute(text("SET TRANSACTION READ ONLY"))
                    if self._statement_timeout_ms:
                        conn.execute(
                            text(f"SET LOCAL statement_timeout = {int(self._statement_timeout_ms)}")
                        )

                result = conn.execute(text(sql))
                if not result.returns_rows:
                    return []
                columns = list(result.keys())
                rows = [dict(zip(columns, row, strict=True)) for row in result.fetchall()]
            finally:
                conn.rollback()

        logger.debug(f"Query returned {len(rows)} rows")
        return rows

    def close(self) -> None:
        """Dispose of the engine if this executor created it."""
        if self._owns_engine:
            self._engine.dispose()

    def __enter__(self) -> SQLAlchemyExecutor:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
