"""Custom exceptions for askdb.

Every stage of the ask-database pipeline fails with exactly one of these.
Messages carry the stage prefix callers match on ("Generated SQL is invalid: ...",
"SQL execution failed: ...", "Query timed out after ...ms").
"""

from __future__ import annotations

from typing import Any


class AskDBError(Exception):
    """Base exception for all askdb errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(AskDBError):
    """Settings are missing or inconsistent."""

    pass


class InputError(AskDBError):
    """Question, schema or model was not supplied."""

    pass


class ProviderError(AskDBError):
    """A language model provider call failed or returned an unusable response."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message, {"provider": provider})
        self.provider = provider


class GenerationError(AskDBError):
    """The model could not produce a candidate SQL query."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"sql generation failed: {reason}", {"reason": reason})
        self.reason = reason


class SqlValidationError(AskDBError):
    """Generated SQL was rejected by the validator."""

    def __init__(self, reason: str, sql: str) -> None:
        super().__init__(f"Generated SQL is invalid: {reason}", {"reason": reason, "sql": sql})
        self.reason = reason
        self.sql = sql


class ExecutionError(AskDBError):
    """The caller's executor raised while running the query."""

    def __init__(self, reason: str, sql: str) -> None:
        super().__init__(f"SQL execution failed: {reason}", {"sql": sql})
        self.reason = reason
        self.sql = sql


class FormattingError(AskDBError):
    """The result formatting model call failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Result formatting failed: {reason}", {"reason": reason})
        self.reason = reason


class QueryTimeoutError(AskDBError, TimeoutError):
    """The pipeline did not finish before the global deadline."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Query timed out after {timeout_ms}ms", {"timeout_ms": timeout_ms})
        self.timeout_ms = timeout_ms
