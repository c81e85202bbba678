"""Core types and specifications for askdb.

All output types serialize to the camelCase wire form used by HTTP callers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from askdb.core.compat import StrEnum


class ProviderName(StrEnum):
    """Supported language model providers."""

    GOOGLE = "google"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid provider values."""
        return [p.value for p in cls]


class PipelineStage(StrEnum):
    """States of a single ask-database run."""

    IDLE = "idle"
    GENERATING = "generating"
    VALIDATING = "validating"
    LIMITING = "limiting"
    EXECUTING = "executing"
    FORMATTING = "formatting"
    DONE = "done"
    FAILED = "failed"


# === Schema description (input format) ===


class ColumnSchema(BaseModel):
    """Definition of a single column within a table."""

    name: str = Field(..., description="Column name as it appears in the database")
    type: str = Field(..., description="PostgreSQL data type (uuid, text, integer, ...)")
    description: str | None = Field(default=None, description="What this column contains")
    sensitive: bool = Field(
        default=False,
        description="Hide this column from the model (passwords, tokens, PII)",
    )


class TableSchema(BaseModel):
    """Definition of a single database table."""

    name: str = Field(..., description="Table name as it appears in the database")
    description: str | None = Field(default=None, description="What this table contains")
    columns: list[ColumnSchema] = Field(default_factory=list)


class SchemaConfig(BaseModel):
    """Complete schema configuration for a database.

    Accepts both snake_case and camelCase keys so JSON schema files written for
    other clients (``customInstructions``) load unchanged.
    """

    tables: list[TableSchema] = Field(default_factory=list)
    relationships: list[str] = Field(
        default_factory=list,
        description="Foreign keys, formatted 'table.column → referenced_table.column'",
    )
    custom_instructions: str | None = Field(
        default=None,
        description="Business rules or default filters for the model",
    )

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# === Pipeline values ===


class TokenUsage(BaseModel):
    """Token counters reported by a single model call."""

    input_tokens: int = 0
    output_tokens: int = 0

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


class CandidateSql(BaseModel):
    """SQL produced by a model. Untrusted until validated."""

    sql: str
    explanation: str = ""
    usage: TokenUsage | None = None


class FormattedAnswer(BaseModel):
    """Prose answer produced from raw rows."""

    answer: str
    usage: TokenUsage | None = None


class UsageSummary(BaseModel):
    """Token usage across the model calls of one run."""

    sql_generation: TokenUsage
    formatting: TokenUsage | None = None
    total: TokenUsage

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


class AskDatabaseResult(BaseModel):
    """Final result of one ask-database run."""

    sql: str
    explanation: str
    answer: str
    raw_data: list[Any] = Field(default_factory=list)
    execution_time_ms: float
    usage: UsageSummary

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire form; ``usage.formatting`` is omitted when unset."""
        data = self.model_dump(by_alias=True, exclude={"usage"})
        data["usage"] = self.usage.model_dump(by_alias=True, exclude_none=True)
        return data
