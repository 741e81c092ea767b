"""Rendering of row tables and writing them to files."""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
import enum
import io
from pathlib import Path
from typing import Any

import pandas as pd

from bookkeeper.analytics.accounting.decimals import round_money
from bookkeeper.config.decorators import LoggerMixin, log_calls
from bookkeeper.config.settings import Settings, WriteMode
from bookkeeper.data.managers.csv_manager import CSVManager
from bookkeeper.data.managers.excel_manager import DEFAULT_SHEET, ExcelManager
from bookkeeper.data.managers.markdown_manager import MarkdownManager
from bookkeeper.data.parsers.base import file_format
from bookkeeper.errors import ConfigurationError, OutputFileExistsError

# Columns holding amounts of money, rounded to the configured scale
MONEY_COLUMNS = frozenset(
    {
        "average_price",
        "invested_amount",
        "market_price",
        "market_value",
        "profit_and_loss",
        "profit_and_loss_percent",
        "deposits",
        "withdrawals",
        "costs",
    }
)


class FileWriter:
    """Writes text files according to a WriteMode."""

    def __init__(self, mode: WriteMode = WriteMode.OVERWRITE):
        self.mode = mode

    @staticmethod
    def expand_path(path: str | Path, now: datetime | None = None) -> Path:
        """Expand strftime placeholders in a file name (``report-%Y%m%d.md``)."""
        now = now or datetime.now()
        return Path(now.strftime(str(path)))

    def check(self, path: Path) -> None:
        """Raise OutputFileExistsError if the mode forbids touching ``path``."""
        if self.mode is WriteMode.STOP_IF_EXISTS and path.exists():
            raise OutputFileExistsError(path)

    def appends_to(self, path: Path) -> bool:
        """True when content will be added to a non-empty existing file."""
        return self.mode is WriteMode.APPEND and path.exists() and path.stat().st_size > 0

    @log_calls()
    def write(self, path: str | Path, content: str, now: datetime | None = None) -> Path:
        """Write ``content`` and return the expanded path.

        Raises:
            OutputFileExistsError: in STOP_IF_EXISTS mode when the file exists
        """
        target = self.expand_path(path, now)
        self.check(target)
        target.parent.mkdir(parents=True, exist_ok=True)

        if self.appends_to(target):
            existing = target.read_text(encoding="utf-8")
            with target.open("a", encoding="utf-8") as f:
                if not existing.endswith("\n"):
                    f.write("\n")
                f.write(content)
        else:
            target.write_text(content, encoding="utf-8")
        return target


class ReportWriter(LoggerMixin):
    """Renders lists of row dicts as Markdown, CSV or Excel."""

    def __init__(
        self,
        settings: Settings | None = None,
        hidden: Iterable[str] = (),
        title: str | None = None,
    ):
        self.settings = settings or Settings()
        self.hidden = {h.strip().lower() for h in hidden if h.strip()}
        self.title = title

    def format_value(self, column: str, value: Any) -> Any:
        """Text representation of a cell; None stays None."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, datetime):
            return value.strftime(self.settings.date_pattern)
        if isinstance(value, Decimal):
            if column in MONEY_COLUMNS:
                value = round_money(value, self.settings.scale)
            return str(value)
        return value

    def prepare(self, rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        """Drop hidden columns and format the values."""
        return [
            {
                column: self.format_value(column, value)
                for column, value in row.items()
                if column.lower() not in self.hidden
            }
            for row in rows
        ]

    def render(
        self, rows: Iterable[dict[str, Any]], fmt: str = "markdown", include_header: bool = True
    ) -> str | bytes:
        """Render rows; Excel output is returned as workbook bytes.

        Raises:
            ConfigurationError: for an unknown format
        """
        prepared = self.prepare(rows)
        if fmt == "markdown":
            return MarkdownManager.to_markdown_text(prepared, include_header, self.title)
        if fmt == "csv":
            return CSVManager.to_csv_text(prepared, include_header)
        if fmt == "excel":
            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
                pd.DataFrame(prepared).to_excel(writer, sheet_name=DEFAULT_SHEET, index=False)
            return buffer.getvalue()
        raise ConfigurationError(f"Unknown output format: '{fmt}'")

    def write(
        self,
        rows: Iterable[dict[str, Any]],
        path: str | Path,
        mode: WriteMode | None = None,
        now: datetime | None = None,
    ) -> Path:
        """Render rows in the format given by the file suffix and write them.

        In APPEND mode the header is left out when the file already has content.
        """
        file_writer = FileWriter(mode or self.settings.write_mode)
        target = file_writer.expand_path(path, now)
        fmt = file_format(target)

        if fmt == "excel":
            file_writer.check(target)
            ExcelManager.write_excel(
                self.prepare(rows), target, append=file_writer.appends_to(target)
            )
        else:
            include_header = not file_writer.appends_to(target)
            content = self.render(rows, fmt, include_header)
            file_writer.write(target, content)

        self.logger.info("Wrote %s report to %s", fmt, target)
        return target

    def render_sections(self, sections: Iterable[tuple[str, list[dict[str, Any]]]]) -> str:
        """Render titled tables as one Markdown document."""
        parts = [f"# {self.title}\n"] if self.title else []
        for heading, rows in sections:
            table = MarkdownManager.to_markdown_text(self.prepare(rows))
            parts.append(f"## {heading}\n\n{table}")
        return "\n".join(parts)

    def write_sections(
        self,
        sections: Iterable[tuple[str, list[dict[str, Any]]]],
        path: str | Path,
        mode: WriteMode | None = None,
        now: datetime | None = None,
    ) -> Path:
        """Write titled tables to a Markdown file.

        Raises:
            ConfigurationError: if ``path`` is not a Markdown file
        """
        file_writer = FileWriter(mode or self.settings.write_mode)
        target = file_writer.expand_path(path, now)
        if file_format(target) != "markdown":
            raise ConfigurationError(f"Sectioned reports are written as Markdown only: {target}")

        file_writer.write(target, self.render_sections(sections))
        self.logger.info("Wrote markdown report to %s", target)
        return target
