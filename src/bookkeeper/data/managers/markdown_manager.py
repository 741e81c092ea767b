"""Markdown Manager for reading/writing pipe tables."""

from pathlib import Path
from typing import Any

from bookkeeper.config.decorators import log_calls
from bookkeeper.config.logger import get_logger

logger = get_logger(__name__)


def _split_row(line: str) -> list[str]:
    cells = line.strip()
    if cells.startswith("|"):
        cells = cells[1:]
    if cells.endswith("|"):
        cells = cells[:-1]
    return [cell.strip() for cell in cells.split("|")]


def _is_separator(cells: list[str]) -> bool:
    return all(cell and set(cell) <= set("-:") for cell in cells)


class MarkdownManager:
    """Manager for Markdown pipe tables (``| a | b |``)."""

    @staticmethod
    def parse_table(text: str) -> list[dict[str, Any]]:
        """Parse the first pipe table of a text.

        Lines outside the table (titles, blank lines) are ignored, empty
        cells become None.
        """
        header: list[str] | None = None
        rows: list[dict[str, Any]] = []

        for line in text.splitlines():
            if not line.strip().startswith("|"):
                if header is not None and rows:
                    break
                continue

            cells = _split_row(line)
            if header is None:
                header = cells
            elif _is_separator(cells):
                continue
            else:
                rows.append({key: (value or None) for key, value in zip(header, cells)})

        return rows

    @log_calls()
    @staticmethod
    def read_markdown(file_path: str | Path) -> list[dict[str, Any]]:
        """Read the table of a Markdown file and return a list of dictionaries."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Markdown file not found: {file_path}")

        rows = MarkdownManager.parse_table(path.read_text(encoding="utf-8"))
        logger.info("Read %d rows from %s", len(rows), file_path)
        return rows

    @staticmethod
    def to_markdown_text(
        items: list[dict[str, Any]], include_header: bool = True, title: str | None = None
    ) -> str:
        """Render a list of dictionaries as a Markdown table.

        Values are expected to be formatted already; None renders as an
        empty cell.
        """
        if not items:
            return ""

        columns = list(items[0].keys())
        table = [[str(c) for c in columns]] + [
            ["" if row.get(c) is None else str(row.get(c)) for c in columns] for row in items
        ]
        widths = [max(len(r[i]) for r in table) for i in range(len(columns))]

        def line(cells):
            return "|" + "|".join(f" {cell.ljust(w)} " for cell, w in zip(cells, widths)) + "|"

        lines = []
        if title and include_header:
            lines.extend([f"# {title}", ""])
        if include_header:
            lines.append(line(table[0]))
            lines.append("|" + "|".join("-" * (w + 2) for w in widths) + "|")
        lines.extend(line(cells) for cells in table[1:])
        return "\n".join(lines) + "\n"
