"""Ask Database - complete flow from question to answer.

Pipeline (strictly sequential, one global deadline):

    generate → validate → limit → execute → format

Every stage failure aborts the run with a single descriptive error. Nothing is
retried: generated SQL that fails validation is reported back to the caller
together with the reason, and the caller decides whether to ask again.

On timeout the awaiting coroutine is cancelled. A synchronous executor already
running in a worker thread cannot be interrupted and keeps running until the
database call returns; its result is discarded. Those threads belong to a
module pool rather than the event loop, so asyncio.run() returns without
joining them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from askdb.core.types import (
    AskDatabaseResult,
    PipelineStage,
    ProviderName,
    SchemaConfig,
    TokenUsage,
    UsageSummary,
)
from askdb.exceptions import (
    AskDBError,
    ExecutionError,
    FormattingError,
    InputError,
    QueryTimeoutError,
    SqlValidationError,
)
from askdb.llm import get_model
from askdb.llm.provider import LanguageModel
from askdb.query.context import resolve_schema_context
from askdb.query.formatter import format_query_results, summarize_rows
from askdb.query.generator import generate_sql
from askdb.query.limiter import DEFAULT_MAX_ROWS, add_safety_limits
from askdb.query.validator import SqlValidator

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000

Rows = Sequence[Any]
QueryExecutor = Callable[[str], Awaitable[Rows] | Rows]
SchemaSource = str | SchemaConfig | Mapping[str, Any]

# Runs synchronous executors; never shut down by asyncio.run()
_SYNC_QUERY_POOL = ThreadPoolExecutor(thread_name_prefix="askdb-query")


def _is_async_callable(func: Any) -> bool:
    """True for coroutine functions and objects with an async __call__."""
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    )


@dataclass
class _RunState:
    """Progress of one run, kept for logging."""

    stage: PipelineStage = PipelineStage.IDLE

    def advance(self, stage: PipelineStage) -> None:
        logger.debug(f"Pipeline stage: {self.stage} -> {stage}")
        self.stage = stage


class QueryOrchestrator:
    """Runs the ask-database pipeline with a fixed model and executor.

    The orchestrator keeps no state between calls, so one instance can serve
    any number of concurrent ``ask`` calls.

    Example:
        >>> orchestrator = QueryOrchestrator(get_model("google"), execute_query, max_rows=100)
        >>> result = await orchestrator.ask("How many orders shipped today?", MY_SCHEMA)
        >>> print(result.answer)
    """

    def __init__(
        self,
        model: LanguageModel,
        execute_query: QueryExecutor,
        *,
        max_rows: int = DEFAULT_MAX_ROWS,
        format_results: bool = True,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        degrade_formatting: bool = False,
        validator: SqlValidator | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            model: Language model used for SQL generation and formatting
            execute_query: Callable running SQL and returning rows (sync or async)
            max_rows: Row cap appended to unbounded queries
            format_results: Whether to ask the model for a prose answer
            timeout_ms: Deadline for the whole pipeline in milliseconds
            degrade_formatting: Fall back to the deterministic summary when the
                formatting call fails instead of failing the run
            validator: Validator to use (defaults to the built-in policy)
        """
        if isinstance(max_rows, bool) or not isinstance(max_rows, int) or max_rows < 1:
            raise ValueError(f"max_rows must be a positive integer, got {max_rows!r}")
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms!r}")

        self.model = model
        self.execute_query = execute_query
        self.max_rows = max_rows
        self.format_results = format_results
        self.timeout_ms = timeout_ms
        self.degrade_formatting = degrade_formatting
        self.validator = validator or SqlValidator()

    async def ask(self, question: str, schema: SchemaSource) -> AskDatabaseResult:
        """Answer a question against the database.

        Args:
            question: Natural language question
            schema: Schema context string or structured schema

        Returns:
            AskDatabaseResult

        Raises:
            InputError: Missing question or schema (no stage entered)
            GenerationError: Model could not produce SQL
            SqlValidationError: Generated SQL failed the safety policy
            ExecutionError: The executor raised
            FormattingError: Formatting call failed (unless degrade_formatting)
            QueryTimeoutError: The deadline passed first
        """
        if not isinstance(question, str) or not question.strip():
            raise InputError("Question is required")
        schema_context = resolve_schema_context(schema)

        start = time.perf_counter()
        state = _RunState()
        try:
            return await asyncio.wait_for(
                self._run(question, schema_context, start, state),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Query timed out after {self.timeout_ms}ms during {state.stage}")
            state.advance(PipelineStage.FAILED)
            raise QueryTimeoutError(self.timeout_ms) from None
        except AskDBError as e:
            logger.warning(f"Pipeline failed during {state.stage}: {e.message}")
            state.advance(PipelineStage.FAILED)
            raise

    async def _run(
        self,
        question: str,
        schema_context: str,
        start: float,
        state: _RunState,
    ) -> AskDatabaseResult:
        state.advance(PipelineStage.GENERATING)
        candidate = await generate_sql(question, schema_context, self.model)

        state.advance(PipelineStage.VALIDATING)
        validation = self.validator.validate(candidate.sql)
        if not validation.valid:
            raise SqlValidationError(validation.error or "unknown reason", candidate.sql)

        state.advance(PipelineStage.LIMITING)
        safe_sql = add_safety_limits(candidate.sql, self.max_rows)

        state.advance(PipelineStage.EXECUTING)
        rows = await self._execute(safe_sql)

        state.advance(PipelineStage.FORMATTING)
        answer, formatting_usage = await self._format(question, rows)

        state.advance(PipelineStage.DONE)
        execution_time_ms = (time.perf_counter() - start) * 1000

        sql_usage = candidate.usage or TokenUsage()
        total = sql_usage + (formatting_usage or TokenUsage())

        logger.info(f"Answered question in {execution_time_ms:.0f}ms ({len(rows)} rows)")
        return AskDatabaseResult(
            sql=safe_sql,
            explanation=candidate.explanation,
            answer=answer,
            raw_data=rows,
            execution_time_ms=execution_time_ms,
            usage=UsageSummary(
                sql_generation=sql_usage,
                formatting=formatting_usage,
                total=total,
            ),
        )

    async def _execute(self, sql: str) -> list[Any]:
        try:
            if _is_async_callable(self.execute_query):
                result = await self.execute_query(sql)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(_SYNC_QUERY_POOL, self.execute_query, sql)
                if inspect.isawaitable(result):
                    result = await result
            return list(result) if result is not None else []
        except Exception as e:
            logger.error(f"SQL execution failed: {e}")
            raise ExecutionError(str(e) or "Unknown error", sql) from e

    async def _format(self, question: str, rows: list[Any]) -> tuple[str, TokenUsage | None]:
        """Return (answer, formatting usage); usage is None when no model call ran."""
        if not self.format_results:
            return summarize_rows(rows), None

        try:
            formatted = await format_query_results(question, rows, self.model)
        except FormattingError as e:
            if not self.degrade_formatting:
                raise
            logger.warning(f"{e.message}; using plain summary")
            return summarize_rows(rows), None

        return formatted.answer, formatted.usage or TokenUsage()


async def ask_database(
    question: str,
    schema: SchemaSource,
    execute_query: QueryExecutor,
    model: LanguageModel | None = None,
    *,
    api_key: str | None = None,
    provider: str = ProviderName.GOOGLE,
    model_name: str | None = None,
    max_rows: int = DEFAULT_MAX_ROWS,
    format_results: bool = True,
    timeout: int = DEFAULT_TIMEOUT_MS,
    degrade_formatting: bool = False,
) -> AskDatabaseResult:
    """Complete flow: Question → SQL → Execute → Format Answer.

    Pass either a LanguageModel instance as ``model`` or an ``api_key`` (with
    ``provider`` and optionally ``model_name``) to build one.

    Args:
        question: Natural language question
        schema: Schema context string or structured schema
        execute_query: Callable running SQL against your database and returning rows
        model: Language model instance
        api_key: Provider API key (used when model is not given)
        provider: Provider name ("google", "openai", "anthropic")
        model_name: Provider model name (defaults per provider)
        max_rows: Maximum rows to return
        format_results: Whether to format results into a prose answer with the model
        timeout: Deadline for the whole pipeline in milliseconds
        degrade_formatting: Fall back to a plain summary if formatting fails

    Returns:
        AskDatabaseResult

    Example:
        >>> async def execute_query(sql: str) -> list[dict]:
        ...     async with pool.acquire() as conn:
        ...         return [dict(r) for r in await conn.fetch(sql)]
        >>> result = await ask_database(
        ...     "How many restaurants are in Tokyo?",
        ...     MY_SCHEMA,
        ...     execute_query,
        ...     api_key=os.environ["GEMINI_API_KEY"],
        ... )
    """
    if model is None:
        if not api_key:
            raise InputError("A model or an api_key is required")
        model = get_model(provider, api_key=api_key, model=model_name)

    orchestrator = QueryOrchestrator(
        model,
        execute_query,
        max_rows=max_rows,
        format_results=format_results,
        timeout_ms=timeout,
        degrade_formatting=degrade_formatting,
    )
    return await orchestrator.ask(question, schema)


def ask_database_sync(*args: Any, **kwargs: Any) -> AskDatabaseResult:
    """Blocking wrapper around ask_database for scripts and CLIs."""
    return asyncio.run(ask_database(*args, **kwargs))
