"""SQL generation from natural language questions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from askdb.core.types import CandidateSql, SchemaConfig
from askdb.exceptions import AskDBError, GenerationError
from askdb.llm.provider import LanguageModel
from askdb.query.context import resolve_schema_context

logger = logging.getLogger(__name__)

SQL_GENERATION_RULES = """Rules:
- Only generate SELECT statements
- Never access sensitive columns (passwords, api_keys, secrets, stripe_customer_id)
- Always include LIMIT 1000 unless the user asks for a specific count
- Use proper PostgreSQL syntax
- For counts, use COUNT(*) with GROUP BY when appropriate
- Use ILIKE for case-insensitive text matching
- Return only valid, executable SQL
- Do not use SQL comments"""


class SqlResponse(BaseModel):
    """Shape the model must answer with."""

    sql: str = Field(..., description="The PostgreSQL SELECT query to answer the question")
    explanation: str = Field(
        default="", description="Brief explanation of what the query does"
    )


def build_sql_system_prompt(schema_context: str) -> str:
    """Build the system prompt for SQL generation."""
    return (
        "You are a PostgreSQL expert. Generate SQL queries based on the user's question.\n\n"
        f"{schema_context}\n\n{SQL_GENERATION_RULES}"
    )


async def generate_sql(
    question: str,
    schema: str | SchemaConfig | Mapping[str, Any],
    model: LanguageModel,
) -> CandidateSql:
    """Generate a candidate SQL query for a natural language question.

    The returned SQL is untrusted; validate it before running it.

    Args:
        question: Natural language question
        schema: Schema context string or structured schema
        model: Language model to ask

    Returns:
        CandidateSql with the query, an explanation and token usage

    Raises:
        InputError: If no schema is given
        GenerationError: If the model call fails or returns no SQL

    Example:
        >>> candidate = await generate_sql(
        ...     "How many users signed up last month?", MY_APP_SCHEMA, get_model("google")
        ... )
        >>> candidate.sql
        "SELECT COUNT(*) FROM users WHERE created_at >= ..."
    """
    system_prompt = build_sql_system_prompt(resolve_schema_context(schema))

    try:
        response, usage = await model.generate_structured(system_prompt, question, SqlResponse)
    except AskDBError as e:
        raise GenerationError(e.message) from e
    except Exception as e:
        raise GenerationError(str(e) or e.__class__.__name__) from e

    if not response.sql.strip():
        raise GenerationError("model returned no SQL")

    logger.debug(f"Generated SQL ({model.model_name}): {response.sql}")
    return CandidateSql(sql=response.sql, explanation=response.explanation, usage=usage)
