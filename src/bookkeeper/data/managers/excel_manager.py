"""Excel Manager for reading/writing workbook data."""

from pathlib import Path
from typing import Any

import pandas as pd

from bookkeeper.config.decorators import log_calls
from bookkeeper.config.logger import get_logger

from .csv_manager import CSVManager

logger = get_logger(__name__)

DEFAULT_SHEET = "Sheet1"


class ExcelManager:
    """Manager for reading/writing Excel (.xlsx) workbooks through openpyxl."""

    @log_calls()
    @staticmethod
    def read_excel(
        file_path: str | Path, sheet_name: str | int = 0
    ) -> list[dict[str, Any]]:
        """Read one sheet and return a list of dictionaries, values as text."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Excel file not found: {file_path}")

        df = pd.read_excel(path, sheet_name=sheet_name, dtype=str, engine="openpyxl")
        df.columns = [str(c).strip() for c in df.columns]
        logger.info("Read %d rows from %s", len(df), file_path)
        return CSVManager.frame_to_records(df)

    @log_calls()
    @staticmethod
    def write_excel(
        items: list[dict[str, Any]],
        file_path: str | Path,
        sheet_name: str = DEFAULT_SHEET,
        append: bool = False,
    ) -> None:
        """Write a list of dictionaries to a sheet.

        With ``append`` the rows are added below the existing ones of the
        sheet, otherwise the workbook is replaced.
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(items)

        if append and path.exists():
            existing = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl")
            df = pd.concat([existing, df], ignore_index=True)

        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)

        logger.info("Wrote %d items to %s", len(items), file_path)
