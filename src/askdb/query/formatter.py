"""Format query results into human-readable answers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from askdb.core.types import FormattedAnswer
from askdb.exceptions import AskDBError, FormattingError
from askdb.llm.provider import LanguageModel

logger = logging.getLogger(__name__)

FORMAT_SYSTEM_PROMPT = """You are a helpful assistant that explains database query results in plain English.
Format numbers nicely (e.g., "1,247" not "1247").
Use markdown tables when showing multiple rows of data.
Be concise but informative.
If the data is empty, say so clearly."""


def build_format_prompt(question: str, rows: Sequence[Any]) -> str:
    """Build the user prompt carrying the question and the raw rows."""
    data = json.dumps(list(rows), indent=2, default=str)
    return (
        f"Question: {question}\n\n"
        f"Query Results ({len(rows)} rows):\n"
        f"{data}\n\n"
        "Provide a clear, concise answer to the question based on these results."
    )


async def format_query_results(
    question: str,
    rows: Sequence[Any],
    model: LanguageModel,
) -> FormattedAnswer:
    """Turn raw rows into a prose answer with a model.

    Args:
        question: The question the rows answer
        rows: Rows returned by the executor
        model: Language model to ask

    Returns:
        FormattedAnswer with the answer text and token usage

    Raises:
        FormattingError: If the model call fails

    Example:
        >>> result = await format_query_results(
        ...     "How many restaurants are in Tokyo?", [{"count": 89}], model
        ... )
        >>> result.answer
        'There are 89 restaurants in Tokyo.'
    """
    try:
        answer, usage = await model.generate_text(
            FORMAT_SYSTEM_PROMPT, build_format_prompt(question, rows)
        )
    except AskDBError as e:
        raise FormattingError(e.message) from e
    except Exception as e:
        raise FormattingError(str(e) or e.__class__.__name__) from e

    return FormattedAnswer(answer=answer, usage=usage)


def summarize_rows(rows: Sequence[Any]) -> str:
    """Deterministic answer used when model formatting is off.

    - No rows: "No results found."
    - One row with one column: "Result: <value>"
    - Anything else: "Found <N> result(s)."
    """
    if not rows:
        return "No results found."

    if len(rows) == 1 and isinstance(rows[0], Mapping) and len(rows[0]) == 1:
        value = next(iter(rows[0].values()))
        return f"Result: {value}"

    return f"Found {len(rows)} result(s)."
