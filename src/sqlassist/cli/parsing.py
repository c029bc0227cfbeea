"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any


def parse_context_items(items: list[str] | None) -> dict[str, Any]:
    """Parse repeated ``key=value`` options into a context mapping.

    Values are decoded as JSON when possible, so ``limit=10`` yields an int.
    Order of the items is preserved.

    Examples:
        ["region=EU", "limit=10"] → {"region": "EU", "limit": 10}

    Args:
        items: Raw option values

    Returns:
        Context dictionary

    Raises:
        ValueError: If an item has no '=' or an empty key
    """
    context: dict[str, Any] = {}
    for item in items or []:
        if "=" not in item:
            raise ValueError(f"Invalid context item: '{item}'. Expected format: key=value")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid context item: '{item}'. Key cannot be empty")
        try:
            context[key] = json.loads(value)
        except json.JSONDecodeError:
            # If not valid JSON, use as string
            context[key] = value
    return context


def read_sql(sql: str | None, from_file: str | None) -> str:
    """Resolve SQL text from an argument or a file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If neither SQL nor a file was given
    """
    if from_file:
        file_path = Path(from_file)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {from_file}")
        return file_path.read_text()
    if sql:
        return sql
    raise ValueError("Either provide SQL or use --file")
