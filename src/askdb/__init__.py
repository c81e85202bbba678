"""askdb - Ask your database questions in plain language, safely.

A language model turns the question into SQL. The SQL is checked against a
read-only safety policy and capped with a row limit. Your executor runs it,
and the rows come back together with a plain-English answer.

Example:
    from askdb import SQLAlchemyExecutor, ask_database

    executor = SQLAlchemyExecutor("postgresql://readonly@localhost/shop")

    result = await ask_database(
        "How many orders shipped last week?",
        {
            "tables": [
                {
                    "name": "orders",
                    "columns": [
                        {"name": "id", "type": "integer"},
                        {"name": "shipped_at", "type": "timestamp"},
                    ],
                }
            ]
        },
        executor,
        api_key=os.environ["GEMINI_API_KEY"],
    )
    print(result.answer)  # "142 orders shipped last week."
    print(result.sql)     # "SELECT COUNT(*) FROM orders WHERE ..."

    # Validate and limit SQL from any source
    from askdb import add_safety_limits, validate_sql

    if validate_sql(sql).valid:
        sql = add_safety_limits(sql, 100)
"""

from askdb.config import AskDBSettings
from askdb.core.types import (
    AskDatabaseResult,
    CandidateSql,
    ColumnSchema,
    FormattedAnswer,
    PipelineStage,
    ProviderName,
    SchemaConfig,
    TableSchema,
    TokenUsage,
    UsageSummary,
)
from askdb.exceptions import (
    AskDBError,
    ConfigurationError,
    ExecutionError,
    FormattingError,
    GenerationError,
    InputError,
    ProviderError,
    QueryTimeoutError,
    SqlValidationError,
)
from askdb.execution import SQLAlchemyExecutor
from askdb.llm import LanguageModel, get_model
from askdb.query import (
    QueryOrchestrator,
    SchemaContextBuilder,
    SqlValidator,
    ValidationResult,
    add_safety_limits,
    ask_database,
    ask_database_sync,
    build_schema_context,
    create_schema_template,
    format_query_results,
    generate_sql,
    validate_sql,
)
from askdb.server import AskDatabaseHandler

__version__ = "0.1.0"

__all__ = [
    # Main entry points
    "ask_database",
    "ask_database_sync",
    "QueryOrchestrator",
    # Pipeline stages
    "generate_sql",
    "validate_sql",
    "add_safety_limits",
    "format_query_results",
    "SqlValidator",
    "ValidationResult",
    # Schema context
    "SchemaContextBuilder",
    "build_schema_context",
    "create_schema_template",
    # Models and execution
    "LanguageModel",
    "get_model",
    "SQLAlchemyExecutor",
    "AskDatabaseHandler",
    "AskDBSettings",
    # Types
    "AskDatabaseResult",
    "CandidateSql",
    "ColumnSchema",
    "FormattedAnswer",
    "PipelineStage",
    "ProviderName",
    "SchemaConfig",
    "TableSchema",
    "TokenUsage",
    "UsageSummary",
    # Exceptions
    "AskDBError",
    "ConfigurationError",
    "InputError",
    "ProviderError",
    "GenerationError",
    "SqlValidationError",
    "ExecutionError",
    "FormattingError",
    "QueryTimeoutError",
]
