"""Shared test fixtures for askdb."""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from typing import Any

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from askdb.core.types import SchemaConfig, TokenUsage
from askdb.execution import SQLAlchemyExecutor
from askdb.llm.provider import LanguageModel, T


class FakeModel(LanguageModel):
    """Scripted language model for pipeline tests.

    ``sql`` and ``answer`` may be exceptions to raise instead of a response.
    ``delay`` seconds are slept before each call.
    """

    provider = "fake"

    def __init__(
        self,
        sql: str | Exception = "SELECT COUNT(*) FROM users",
        explanation: str = "Counts users",
        answer: str | Exception = "There are 1,247 users.",
        sql_usage: TokenUsage | None = None,
        answer_usage: TokenUsage | None = None,
        delay: float = 0.0,
    ) -> None:
        self.sql = sql
        self.explanation = explanation
        self.answer = answer
        self.sql_usage = sql_usage or TokenUsage(input_tokens=150, output_tokens=40)
        self.answer_usage = answer_usage or TokenUsage(input_tokens=80, output_tokens=20)
        self.delay = delay
        self.structured_calls: list[tuple[str, str]] = []
        self.text_calls: list[tuple[str, str]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate_structured(
        self, system: str, prompt: str, result_shape: type[T]
    ) -> tuple[T, TokenUsage]:
        self.structured_calls.append((system, prompt))
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.sql, Exception):
            raise self.sql
        value = result_shape.model_validate({"sql": self.sql, "explanation": self.explanation})
        return value, self.sql_usage

    async def generate_text(self, system: str, prompt: str) -> tuple[str, TokenUsage]:
        self.text_calls.append((system, prompt))
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer, self.answer_usage


class RecordingExecutor:
    """Async executor returning fixed rows and remembering the SQL it got."""

    def __init__(self, rows: list[Any] | None = None, error: Exception | None = None) -> None:
        self.rows = rows if rows is not None else [{"count": 1247}]
        self.error = error
        self.calls: list[str] = []

    async def __call__(self, sql: str) -> list[Any]:
        self.calls.append(sql)
        if self.error is not None:
            raise self.error
        return self.rows


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's ASKDB_* and provider key variables out of the tests."""
    for name in (
        "ASKDB_PROVIDER",
        "ASKDB_MODEL",
        "ASKDB_API_KEY",
        "ASKDB_DATABASE_URL",
        "ASKDB_MAX_ROWS",
        "ASKDB_TIMEOUT_MS",
        "ASKDB_FORMAT_RESULTS",
        "ASKDB_CORS_ORIGINS",
        "GEMINI_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def make_model() -> type[FakeModel]:
    """FakeModel class, for tests that script their own responses."""
    return FakeModel


@pytest.fixture
def make_executor() -> type[RecordingExecutor]:
    return RecordingExecutor


@pytest.fixture
def schema_config() -> SchemaConfig:
    """Users/orders schema with one sensitive column."""
    return SchemaConfig.model_validate(
        {
            "tables": [
                {
                    "name": "users",
                    "description": "Registered users",
                    "columns": [
                        {"name": "id", "type": "uuid", "description": "Primary key"},
                        {"name": "email", "type": "text", "description": "User email"},
                        {"name": "password_hash", "type": "text", "sensitive": True},
                    ],
                },
                {
                    "name": "orders",
                    "columns": [
                        {"name": "id", "type": "uuid"},
                        {"name": "user_id", "type": "uuid", "description": "FK to users"},
                        {"name": "total", "type": "decimal"},
                    ],
                },
            ],
            "relationships": ["orders.user_id → users.id"],
            "customInstructions": "Totals are stored in cents.",
        }
    )


@pytest.fixture
def schema_text() -> str:
    return "## users\n| Column | Type | Description |\n| id | uuid | Primary key |\n"


@pytest.fixture
def sqlite_executor() -> Generator[SQLAlchemyExecutor, None, None]:
    """Executor over a single shared in-memory SQLite database with sample rows."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, city TEXT)"))
        conn.execute(
            text(
                "INSERT INTO users (id, email, city) VALUES "
                "(1, 'ana@example.com', 'Tokyo'), "
                "(2, 'ben@example.com', 'Lisbon'), "
                "(3, 'cho@example.com', 'Tokyo')"
            )
        )
    executor = SQLAlchemyExecutor(engine)
    yield executor
    engine.dispose()
