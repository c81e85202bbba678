"""Ready-made executors for running validated SQL against a database."""

from askdb.execution.sqlalchemy import SQLAlchemyExecutor

__all__ = ["SQLAlchemyExecutor"]
