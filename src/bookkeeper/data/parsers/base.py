"""Shared helpers for the file parsers."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from bookkeeper.data.managers.csv_manager import CSVManager
from bookkeeper.data.managers.excel_manager import ExcelManager
from bookkeeper.data.managers.markdown_manager import MarkdownManager
from bookkeeper.errors import ConfigurationError

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
MARKDOWN_SUFFIXES = {".md", ".markdown"}


def file_format(path: str | Path) -> str:
    """Return 'csv', 'excel' or 'markdown' based on the file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix in CSV_SUFFIXES:
        return "csv"
    if suffix in EXCEL_SUFFIXES:
        return "excel"
    if suffix in MARKDOWN_SUFFIXES:
        return "markdown"
    raise ConfigurationError(f"Unsupported file type: '{path}'")


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """Read the rows of a CSV, Excel or Markdown file with normalized keys."""
    fmt = file_format(path)
    if fmt == "csv":
        rows = CSVManager.read_csv(path)
    elif fmt == "excel":
        rows = ExcelManager.read_excel(path)
    else:
        rows = MarkdownManager.read_markdown(path)
    return [normalize_keys(row) for row in rows]


def normalize_keys(row: dict[str, Any]) -> dict[str, Any]:
    """Lower-case the column names and use underscores instead of spaces."""
    normalized = {}
    for key, value in row.items():
        name = str(key).strip().lower().replace(" ", "_").replace("-", "_")
        if isinstance(value, str):
            value = value.strip() or None
        normalized[name] = value
    return normalized


def normalize_datetime(value: datetime) -> datetime:
    """Timezone-aware values are converted to naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value, pattern: str) -> datetime:
    """Parse a date with the configured pattern, falling back to ISO-8601.

    Raises:
        ValueError: if the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return normalize_datetime(value)

    text = str(value).strip()
    try:
        return datetime.strptime(text, pattern)
    except ValueError:
        pass

    try:
        return normalize_datetime(datetime.fromisoformat(text))
    except ValueError:
        pass

    try:
        timestamp = pd.to_datetime(text)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid date: '{value}'") from e
    if pd.isna(timestamp):
        raise ValueError(f"Invalid date: '{value}'")
    return normalize_datetime(timestamp.to_pydatetime())
