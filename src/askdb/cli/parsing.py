"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any


def read_sql(sql: str | None, from_file: str | None) -> str:
    """Return SQL from the argument or from a file.

    Raises:
        ValueError: If neither is given
    """
    if from_file:
        return Path(from_file).read_text()
    if sql:
        return sql
    raise ValueError("Either provide SQL or use --file")


def read_schema_file(path: str) -> str | dict[str, Any]:
    """Load a schema file.

    ``.json`` files are parsed as structured schemas; anything else is used
    as pre-rendered context text.

    Raises:
        ValueError: If a JSON file does not contain an object
    """
    file_path = Path(path)
    content = file_path.read_text()
    if file_path.suffix.lower() != ".json":
        return content

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Schema file {path} must contain a JSON object")
    return data
