"""Tests for the ask-database pipeline."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any

import pytest

from askdb.core.types import TokenUsage
from askdb.exceptions import (
    ExecutionError,
    FormattingError,
    GenerationError,
    InputError,
    ProviderError,
    QueryTimeoutError,
    SqlValidationError,
)
from askdb.execution import SQLAlchemyExecutor
from askdb.query import orchestrator as orchestrator_module
from askdb.query.orchestrator import QueryOrchestrator, ask_database, ask_database_sync


class TestAskSuccess:
    """Runs that reach the Done state."""

    async def test_count_without_formatting(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        """A COUNT query is left unlimited and summarized as a single value."""
        executor = make_executor(rows=[{"count": 1247}])

        result = await ask_database(
            "How many users?", schema_text, executor, fake_model, format_results=False
        )

        assert result.sql == "SELECT COUNT(*) FROM users"
        assert executor.calls == ["SELECT COUNT(*) FROM users"]
        assert result.answer == "Result: 1247"
        assert result.raw_data == [{"count": 1247}]
        assert result.usage.formatting is None
        assert result.usage.total == result.usage.sql_generation
        assert fake_model.text_calls == []

    async def test_limit_applied_before_execution(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(sql="SELECT * FROM orders;")
        executor = make_executor(rows=[])

        result = await ask_database(
            "List orders", schema_text, executor, model, max_rows=100, format_results=False
        )

        assert executor.calls == ["SELECT * FROM orders LIMIT 100"]
        assert result.sql == "SELECT * FROM orders LIMIT 100"
        assert result.answer == "No results found."

    async def test_formatted_answer_and_usage_totals(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        result = await ask_database("How many users?", schema_text, make_executor(), fake_model)

        assert result.answer == "There are 1,247 users."
        assert result.explanation == "Counts users"
        assert result.usage.sql_generation == TokenUsage(input_tokens=150, output_tokens=40)
        assert result.usage.formatting == TokenUsage(input_tokens=80, output_tokens=20)
        assert result.usage.total == TokenUsage(input_tokens=230, output_tokens=60)
        assert result.execution_time_ms >= 0

    async def test_sync_executor_runs_in_thread(
        self, make_model: Any, sqlite_executor: SQLAlchemyExecutor, schema_text: str
    ) -> None:
        model = make_model(sql="SELECT email FROM users WHERE city = 'Tokyo' ORDER BY id")

        result = await ask_database(
            "Who lives in Tokyo?", schema_text, sqlite_executor, model, format_results=False
        )

        assert result.raw_data == [{"email": "ana@example.com"}, {"email": "cho@example.com"}]
        assert result.answer == "Found 2 result(s)."

    async def test_plain_function_executor(self, fake_model: Any, schema_text: str) -> None:
        def execute(sql: str) -> None:
            return None

        result = await ask_database("q", schema_text, execute, fake_model, format_results=False)

        assert result.raw_data == []
        assert result.answer == "No results found."

    async def test_to_dict_wire_form(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        result = await ask_database(
            "q", schema_text, make_executor(), fake_model, format_results=False
        )

        data = result.to_dict()

        assert set(data) == {"sql", "explanation", "answer", "rawData", "executionTimeMs", "usage"}
        assert data["usage"] == {
            "sqlGeneration": {"inputTokens": 150, "outputTokens": 40},
            "total": {"inputTokens": 150, "outputTokens": 40},
        }

    async def test_concurrent_runs_share_orchestrator(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        orchestrator = QueryOrchestrator(fake_model, make_executor(), format_results=False)

        results = await asyncio.gather(
            orchestrator.ask("first", schema_text),
            orchestrator.ask("second", schema_text),
        )

        assert [r.answer for r in results] == ["Result: 1247", "Result: 1247"]


class TestAskFailures:
    """Runs that end in the Failed state."""

    async def test_invalid_sql_not_executed(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(sql="DROP TABLE users")
        executor = make_executor()

        with pytest.raises(SqlValidationError) as exc_info:
            await ask_database("Drop the users table", schema_text, executor, model)

        assert str(exc_info.value) == "Generated SQL is invalid: Query must be a SELECT statement"
        assert exc_info.value.sql == "DROP TABLE users"
        assert executor.calls == []

    async def test_generation_failure(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(sql=ProviderError("fake", "model unavailable"))

        with pytest.raises(GenerationError, match="sql generation failed: model unavailable"):
            await ask_database("q", schema_text, make_executor(), model)

    async def test_execution_error_wrapped(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        executor = make_executor(error=RuntimeError('relation "users" does not exist'))

        with pytest.raises(ExecutionError) as exc_info:
            await ask_database("q", schema_text, executor, fake_model)

        assert str(exc_info.value) == 'SQL execution failed: relation "users" does not exist'
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert fake_model.text_calls == []

    async def test_execution_error_without_message(
        self, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        executor = make_executor(error=RuntimeError())

        with pytest.raises(ExecutionError, match="SQL execution failed: Unknown error"):
            await ask_database("q", schema_text, executor, fake_model)

    async def test_formatting_failure_propagates(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(answer=RuntimeError("overloaded"))

        with pytest.raises(FormattingError, match="Result formatting failed: overloaded"):
            await ask_database("q", schema_text, make_executor(), model)

    async def test_formatting_failure_degrades_when_enabled(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(answer=RuntimeError("overloaded"))

        result = await ask_database(
            "q", schema_text, make_executor(), model, degrade_formatting=True
        )

        assert result.answer == "Result: 1247"
        assert result.usage.formatting is None
        assert result.usage.total == TokenUsage(input_tokens=150, output_tokens=40)

    async def test_timeout(self, make_model: Any, make_executor: Any, schema_text: str) -> None:
        model = make_model(delay=1.0)
        executor = make_executor()

        with pytest.raises(QueryTimeoutError) as exc_info:
            await ask_database("q", schema_text, executor, model, timeout=50)

        assert str(exc_info.value) == "Query timed out after 50ms"
        assert isinstance(exc_info.value, TimeoutError)
        assert executor.calls == []

    async def test_stacked_drop_named_in_error(
        self, make_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        model = make_model(sql="SELECT 1; DROP TABLE users")
        executor = make_executor()

        with pytest.raises(SqlValidationError, match="DROP") as exc_info:
            await ask_database("q", schema_text, executor, model)

        assert str(exc_info.value).startswith("Generated SQL is invalid")
        assert executor.calls == []

    async def test_timeout_with_executor_that_never_resolves(
        self, fake_model: Any, schema_text: str
    ) -> None:
        async def hang(sql: str) -> list[Any]:
            await asyncio.Event().wait()
            return []

        start = time.perf_counter()
        with pytest.raises(QueryTimeoutError, match="Query timed out after 50ms"):
            await ask_database("q", schema_text, hang, fake_model, timeout=50)

        assert time.perf_counter() - start < 1.0


class TestAskInput:
    """Input errors are raised before any stage runs."""

    @pytest.mark.parametrize("question", ["", "   ", None])
    async def test_question_required(
        self, fake_model: Any, make_executor: Any, schema_text: str, question: Any
    ) -> None:
        with pytest.raises(InputError, match="Question is required"):
            await ask_database(question, schema_text, make_executor(), fake_model)
        assert fake_model.structured_calls == []

    async def test_schema_required(self, fake_model: Any, make_executor: Any) -> None:
        with pytest.raises(InputError, match="Schema is required"):
            await ask_database("q", "", make_executor(), fake_model)
        assert fake_model.structured_calls == []

    async def test_model_or_api_key_required(self, make_executor: Any, schema_text: str) -> None:
        with pytest.raises(InputError, match="A model or an api_key is required"):
            await ask_database("q", schema_text, make_executor())

    async def test_api_key_builds_model(
        self,
        fake_model: Any,
        make_executor: Any,
        schema_text: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        seen: dict[str, Any] = {}

        def fake_get_model(provider: str, api_key: str | None = None, model: str | None = None):
            seen.update(provider=provider, api_key=api_key, model=model)
            return fake_model

        monkeypatch.setattr(orchestrator_module, "get_model", fake_get_model)

        await ask_database(
            "q",
            schema_text,
            make_executor(),
            api_key="sk-test",
            provider="openai",
            model_name="gpt-4o",
            format_results=False,
        )

        assert seen == {"provider": "openai", "api_key": "sk-test", "model": "gpt-4o"}

    def test_invalid_max_rows(self, fake_model: Any, make_executor: Any) -> None:
        with pytest.raises(ValueError, match="max_rows"):
            QueryOrchestrator(fake_model, make_executor(), max_rows=0)

    def test_invalid_timeout(self, fake_model: Any, make_executor: Any) -> None:
        with pytest.raises(ValueError, match="timeout_ms"):
            QueryOrchestrator(fake_model, make_executor(), timeout_ms=0)


class TestAskDatabaseSync:
    """Tests for the blocking wrapper."""

    def test_runs_pipeline(self, fake_model: Any, make_executor: Any, schema_text: str) -> None:
        result = ask_database_sync(
            "How many users?", schema_text, make_executor(), fake_model, format_results=False
        )
        assert result.answer == "Result: 1247"

    def test_timeout_does_not_wait_for_blocked_sync_executor(
        self, fake_model: Any, schema_text: str
    ) -> None:
        release = threading.Event()

        def blocked(sql: str) -> list[Any]:
            release.wait(5.0)
            return []

        start = time.perf_counter()
        try:
            with pytest.raises(QueryTimeoutError, match="Query timed out after 50ms"):
                ask_database_sync(
                    "q", schema_text, blocked, fake_model, format_results=False, timeout=50
                )
            elapsed = time.perf_counter() - start
        finally:
            release.set()

        assert elapsed < 1.0


class TestExecutorDispatch:
    """Sync executors go to the worker pool, async ones are awaited directly."""

    def test_async_callable_detection(self, make_executor: Any) -> None:
        async def run(sql: str) -> list[Any]:
            return []

        def run_sync(sql: str) -> list[Any]:
            return []

        assert orchestrator_module._is_async_callable(run)
        assert orchestrator_module._is_async_callable(make_executor())
        assert not orchestrator_module._is_async_callable(run_sync)

    async def test_async_callable_object_skips_pool(
        self, monkeypatch: pytest.MonkeyPatch, fake_model: Any, make_executor: Any, schema_text: str
    ) -> None:
        class NoPool:
            def submit(self, *args: Any, **kwargs: Any) -> Any:
                raise AssertionError("async executor sent to the thread pool")

        monkeypatch.setattr(orchestrator_module, "_SYNC_QUERY_POOL", NoPool())
        executor = make_executor()

        result = await ask_database("q", schema_text, executor, fake_model, format_results=False)

        assert result.answer == "Result: 1247"
        assert executor.calls == ["SELECT COUNT(*) FROM users"]

    async def test_sync_executor_runs_on_pool_thread(
        self, fake_model: Any, schema_text: str
    ) -> None:
        threads: list[str] = []

        def execute(sql: str) -> list[Any]:
            threads.append(threading.current_thread().name)
            return [{"count": 1}]

        await ask_database("q", schema_text, execute, fake_model, format_results=False)

        assert threads[0].startswith("askdb-query")
