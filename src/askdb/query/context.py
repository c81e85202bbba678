"""Schema Context Builder for LLM SQL Generation.

Renders a structured schema description into the markdown context handed to
the model. The rendered context includes:
- One table per database table with column names, types and descriptions
- Foreign key relationships
- Custom instructions (business rules, default filters)

Columns flagged ``sensitive`` are never rendered; the model is not told they
exist.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from askdb.core.types import ColumnSchema, SchemaConfig
from askdb.exceptions import InputError

CONTEXT_HEADER = (
    "You have access to a PostgreSQL database. Here are the tables and their columns:\n\n"
)

_SCHEMA_REQUIRED = (
    "Schema is required. Pass your database schema as a string or SchemaConfig object."
)

# Example schema showing the expected markdown format (documentation only)
EXAMPLE_SCHEMA = """
You have access to a PostgreSQL database. Here are the tables and their columns:

## users
| Column | Type | Description |
|--------|------|-------------|
| id | uuid | Primary key |
| email | text | User email |
| name | text | Display name |
| created_at | timestamptz | When user was created |

## orders
| Column | Type | Description |
|--------|------|-------------|
| id | uuid | Primary key |
| user_id | uuid | FK to users |
| total | decimal | Order total in cents |
| status | text | 'pending', 'completed', 'cancelled' |
| created_at | timestamptz | When order was created |

## products
| Column | Type | Description |
|--------|------|-------------|
| id | uuid | Primary key |
| name | text | Product name |
| price | decimal | Price in cents |
| category | text | Product category |

## Relationships
- orders.user_id → users.id
- order_items.order_id → orders.id
- order_items.product_id → products.id
"""


class SchemaContextBuilder:
    """Builds the schema context text for LLM SQL generation."""

    def __init__(self, config: SchemaConfig) -> None:
        """Initialize the context builder.

        Args:
            config: Structured schema description
        """
        self._config = config

    def build_context(self) -> str:
        """Build schema context for LLM SQL generation.

        Returns:
            Markdown context suitable for a system prompt
        """
        parts = [CONTEXT_HEADER]
        for table in self._config.tables:
            parts.append(self._build_table(table.name, table.description, table.columns))

        if self._config.relationships:
            parts.append("## Relationships\n")
            parts.extend(f"- {rel}\n" for rel in self._config.relationships)
            parts.append("\n")

        if self._config.custom_instructions:
            parts.append(f"## Additional Instructions\n{self._config.custom_instructions}\n")

        return "".join(parts)

    def _build_table(
        self, name: str, description: str | None, columns: list[ColumnSchema]
    ) -> str:
        lines = [f"## {name}\n"]
        if description:
            lines.append(f"{description}\n")
        lines.append("| Column | Type | Description |\n")
        lines.append("|--------|------|-------------|\n")
        for column in columns:
            if column.sensitive:
                continue
            lines.append(f"| {column.name} | {column.type} | {column.description or ''} |\n")
        lines.append("\n")
        return "".join(lines)


def build_schema_context(config: SchemaConfig) -> str:
    """Render a SchemaConfig to the markdown context given to the model.

    Example:
        >>> config = SchemaConfig(tables=[{"name": "users", "columns": [
        ...     {"name": "id", "type": "uuid"},
        ...     {"name": "password_hash", "type": "text", "sensitive": True},
        ... ]}])
        >>> "password_hash" in build_schema_context(config)
        False
    """
    return SchemaContextBuilder(config).build_context()


def resolve_schema_context(schema: str | SchemaConfig | Mapping[str, Any] | None) -> str:
    """Return the text context for a schema given as text or structured data.

    Args:
        schema: Pre-rendered context string, SchemaConfig, or a mapping in
            SchemaConfig shape (e.g. loaded from JSON)

    Returns:
        Context text

    Raises:
        InputError: If no schema is given or the mapping is not a valid schema
    """
    if isinstance(schema, str):
        if not schema.strip():
            raise InputError(_SCHEMA_REQUIRED)
        return schema

    if isinstance(schema, SchemaConfig):
        return build_schema_context(schema)

    if isinstance(schema, Mapping) and schema:
        try:
            config = SchemaConfig.model_validate(schema)
        except ValidationError as e:
            raise InputError(f"Schema is invalid: {e}") from e
        return build_schema_context(config)

    raise InputError(_SCHEMA_REQUIRED)


def create_schema_template(app_name: str) -> str:
    """Return a starter schema module for an application to copy and customize.

    Args:
        app_name: Application name, used for the constant name

    Returns:
        Python source defining ``<APP_NAME>_SCHEMA``
    """
    constant = re.sub(r"[^A-Z0-9]", "_", app_name.upper())
    return f'''
# =============================================================================
# {app_name} Database Schema
# Copy this to your app and customize for your tables
# =============================================================================

{constant}_SCHEMA = """
You have access to a PostgreSQL database. Here are the tables and their columns:

## your_first_table
Description of what this table contains.
| Column | Type | Description |
|--------|------|-------------|
| id | uuid | Primary key |
| name | text | ... |
| created_at | timestamptz | When record was created |

## your_second_table
| Column | Type | Description |
|--------|------|-------------|
| id | uuid | Primary key |
| first_table_id | uuid | FK to your_first_table |

## Relationships
- your_second_table.first_table_id → your_first_table.id
"""
'''
