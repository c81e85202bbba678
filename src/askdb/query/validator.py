"""SQL Validator for LLM-generated queries.

Decides whether a candidate query is safe to run against a read-only
connection:
- Only SELECT statements (or CTEs starting with WITH) are allowed
- Write/DDL/administrative keywords are blocked
- Sensitive tables and columns cannot be referenced
- Only one statement, and no comments

The policy is a conservative denylist matched with regular expressions. It can
reject legitimate identifiers that contain a blocked word (``password_reset_at``)
and does not attempt to parse SQL.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

BLOCKED_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "TRUNCATE",
    "CREATE",
    "GRANT",
    "REVOKE",
    "EXECUTE",
    "CALL",
    "VACUUM",
    "REINDEX",
    "CLUSTER",
    "COMMENT",
    "LOCK",
    "UNLISTEN",
    "NOTIFY",
)

SENSITIVE_PATTERNS = (
    r"password",
    r"stripe_customer",
    r"api_key",
    r"secret",
    r"auth\.users",
    r"pg_catalog",
    r"information_schema",
)

ALLOWED_STATEMENT_PREFIXES = ("SELECT", "WITH")


@dataclass(frozen=True)
class ValidationResult:
    """Result of query validation."""

    valid: bool
    """Whether the query passed validation."""

    error: str | None = None
    """Reason for the first failed check."""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"valid": self.valid}
        if self.error is not None:
            result["error"] = self.error
        return result


class SqlValidator:
    """Validates LLM-generated SQL before execution.

    Checks run in a fixed order and the first failure wins:
    1. Non-empty input
    2. Statement type (SELECT / WITH)
    3. Blocked keywords (whole word, case-insensitive)
    4. Sensitive data patterns
    5. Multiple statements
    6. Comments

    Extra keywords and patterns extend the built-in lists; they can never
    remove an entry from them.
    """

    def __init__(
        self,
        extra_blocked_keywords: Iterable[str] = (),
        extra_sensitive_patterns: Iterable[str] = (),
    ) -> None:
        """Initialize the validator.

        Args:
            extra_blocked_keywords: Additional keywords to reject as whole words
            extra_sensitive_patterns: Additional regular expressions to reject
        """
        keywords = list(BLOCKED_KEYWORDS)
        for keyword in extra_blocked_keywords:
            keyword = keyword.upper()
            if keyword not in keywords:
                keywords.append(keyword)

        self._keyword_patterns = [
            (keyword, re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE))
            for keyword in keywords
        ]
        self._sensitive_patterns = [
            re.compile(pattern, re.IGNORECASE)
            for pattern in (*SENSITIVE_PATTERNS, *extra_sensitive_patterns)
        ]

    @property
    def blocked_keywords(self) -> list[str]:
        return [keyword for keyword, _ in self._keyword_patterns]

    def validate(self, sql: Any) -> ValidationResult:
        """Validate an SQL query.

        Args:
            sql: Candidate SQL string (anything else is rejected)

        Returns:
            ValidationResult with validation status and the failure reason
        """
        if not sql or not isinstance(sql, str):
            return ValidationResult(valid=False, error="SQL query is required")

        normalized = sql.strip().upper()
        if not normalized.startswith(ALLOWED_STATEMENT_PREFIXES):
            return ValidationResult(valid=False, error="Query must be a SELECT statement")

        keyword = self._find_blocked_keyword(sql)
        if keyword:
            return ValidationResult(
                valid=False, error=f"Query contains blocked keyword: {keyword}"
            )

        if self._touches_sensitive_data(sql):
            return ValidationResult(valid=False, error="Query attempts to access sensitive data")

        if self._has_multiple_statements(sql):
            return ValidationResult(valid=False, error="Multiple statements not allowed")

        if "--" in sql or "/*" in sql:
            return ValidationResult(valid=False, error="SQL comments not allowed")

        return ValidationResult(valid=True)

    def _find_blocked_keyword(self, sql: str) -> str | None:
        for keyword, pattern in self._keyword_patterns:
            if pattern.search(sql):
                return keyword
        return None

    def _touches_sensitive_data(self, sql: str) -> bool:
        return any(pattern.search(sql) for pattern in self._sensitive_patterns)

    def _has_multiple_statements(self, sql: str) -> bool:
        """Check for a semicolon anywhere but the final non-whitespace position."""
        semicolon_index = sql.find(";")
        if semicolon_index == -1:
            return False
        return semicolon_index != len(sql.rstrip()) - 1


_default_validator = SqlValidator()


def validate_sql(sql: Any) -> ValidationResult:
    """Validate a query against the default policy.

    Args:
        sql: SQL query to validate

    Returns:
        ValidationResult
    """
    return _default_validator.validate(sql)
