"""Question-to-answer pipeline: generation, validation, limiting and formatting."""

from askdb.query.context import (
    SchemaContextBuilder,
    build_schema_context,
    create_schema_template,
    resolve_schema_context,
)
from askdb.query.formatter import format_query_results, summarize_rows
from askdb.query.generator import generate_sql
from askdb.query.limiter import DEFAULT_MAX_ROWS, add_safety_limits
from askdb.query.orchestrator import (
    DEFAULT_TIMEOUT_MS,
    QueryOrchestrator,
    ask_database,
    ask_database_sync,
)
from askdb.query.validator import SqlValidator, ValidationResult, validate_sql

__all__ = [
    "DEFAULT_MAX_ROWS",
    "DEFAULT_TIMEOUT_MS",
    "QueryOrchestrator",
    "SchemaContextBuilder",
    "SqlValidator",
    "ValidationResult",
    "add_safety_limits",
    "ask_database",
    "ask_database_sync",
    "build_schema_context",
    "create_schema_template",
    "format_query_results",
    "generate_sql",
    "resolve_schema_context",
    "summarize_rows",
    "validate_sql",
]
