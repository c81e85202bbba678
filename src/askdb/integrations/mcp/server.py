"""MCP server for askdb.

Exposes SQL validation, safety limiting and the ask-database pipeline as MCP
tools for AI agents.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP  # type: ignore[import-not-found]

from askdb.cli.parsing import read_schema_file
from askdb.config import AskDBSettings
from askdb.execution import SQLAlchemyExecutor
from askdb.llm import get_model
from askdb.llm.provider import LanguageModel
from askdb.query.context import resolve_schema_context
from askdb.query.limiter import DEFAULT_MAX_ROWS, add_safety_limits
from askdb.query.orchestrator import QueryExecutor, QueryOrchestrator, SchemaSource
from askdb.query.validator import validate_sql

# Configure logging to stderr (important for stdio transport)
logging.basicConfig(level=logging.INFO, stream=sys.stderr)
logger = logging.getLogger(__name__)

# Create MCP server
mcp = FastMCP("askdb")

# Server state (set during server startup)
_settings: AskDBSettings | None = None
_schema: SchemaSource | None = None
_executor: QueryExecutor | None = None
_model: LanguageModel | None = None


def get_settings() -> AskDBSettings:
    """Get the server settings."""
    if _settings is None:
        raise RuntimeError("Server not initialized. Call create_server() first.")
    return _settings


# === Query Safety Tools ===


@mcp.tool()
def askdb_validate_sql(sql: str) -> str:
    """Check whether a SQL query passes the read-only safety policy.

    Only single SELECT (or WITH) statements without comments, write keywords
    or references to sensitive data pass.

    Args:
        sql: SQL query to check

    Returns:
        JSON with "valid" and, when invalid, the "error" reason.
    """
    return json.dumps(validate_sql(sql).to_dict())


@mcp.tool()
def askdb_add_limit(sql: str, max_rows: int = DEFAULT_MAX_ROWS) -> str:
    """Validate a query and append a row limit unless it is already bounded.

    Args:
        sql: SQL query
        max_rows: Row cap to append (default: 1000)

    Returns:
        JSON with the limited "sql", or an "error" if the query is rejected.
    """
    validation = validate_sql(sql)
    if not validation.valid:
        return json.dumps({"error": validation.error})
    try:
        return json.dumps({"sql": add_safety_limits(sql, max_rows)})
    except ValueError as e:
        return json.dumps({"error": str(e)})


# === Schema Tools ===


@mcp.tool()
def askdb_schema_context() -> str:
    """Get the schema context the server generates SQL against.

    Use this to see which tables and columns are available before asking.

    Returns:
        JSON with the "context" text.
    """
    try:
        return json.dumps({"context": resolve_schema_context(_schema)})
    except Exception as e:
        return json.dumps({"error": str(e)})


# === Question Answering ===


@mcp.tool()
async def askdb_ask(
    question: str,
    max_rows: int | None = None,
    format_results: bool | None = None,
) -> str:
    """Answer a natural language question against the configured database.

    The generated SQL is validated and row-limited before it runs on a
    read-only connection.

    Args:
        question: Natural language question
        max_rows: Row cap for unbounded queries (default from server settings)
        format_results: Whether to produce a prose answer (default from server settings)

    Returns:
        JSON with sql, explanation, answer, rawData, executionTimeMs and usage,
        or an "error".
    """
    try:
        settings = get_settings()
        if _executor is None:
            raise RuntimeError("No database configured for this server.")
        model = _model or get_model(
            settings.provider, api_key=settings.api_key, model=settings.model
        )
        orchestrator = QueryOrchestrator(
            model,
            _executor,
            max_rows=max_rows or settings.max_rows,
            format_results=settings.format_results if format_results is None else format_results,
            timeout_ms=settings.timeout_ms,
        )
        result = await orchestrator.ask(question, _schema)  # type: ignore[arg-type]
        return json.dumps(result.to_dict(), default=str)
    except Exception as e:
        return json.dumps({"error": str(e)})


def create_server(
    database_url: str,
    schema: SchemaSource,
    settings: AskDBSettings | None = None,
    model: LanguageModel | None = None,
) -> FastMCP:
    """Create and configure the MCP server with a database connection.

    Args:
        database_url: Database URL (read-only credentials recommended)
        schema: Schema context string or structured schema
        settings: Settings to use (defaults to ASKDB_* environment variables)
        model: Language model to use instead of building one from settings

    Returns:
        Configured FastMCP server instance
    """
    global _settings, _schema, _executor, _model
    _settings = settings or AskDBSettings.from_env()
    _schema = schema
    _executor = SQLAlchemyExecutor(database_url)
    _model = model
    logger.info(f"askdb MCP server initialized ({_settings.provider})")
    return mcp


def main() -> None:
    """Entry point for running the MCP server."""
    parser = argparse.ArgumentParser(description="askdb MCP Server")
    parser.add_argument(
        "--database",
        "-d",
        required=True,
        help="Database URL (e.g. postgresql://readonly@localhost/db)",
    )
    parser.add_argument(
        "--schema",
        "-s",
        required=True,
        help="Schema file (.json structured schema, anything else is context text)",
    )
    args = parser.parse_args()

    schema: Any = read_schema_file(args.schema)
    create_server(args.database, schema)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
