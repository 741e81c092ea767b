"""CSV Manager for reading/writing CSV data."""

import csv
import io
from pathlib import Path
from typing import Any

import pandas as pd

from bookkeeper.config.decorators import log_calls
from bookkeeper.config.logger import get_logger

logger = get_logger(__name__)


class CSVManager:
    """Manager for reading/writing CSV data."""

    @log_calls()
    @staticmethod
    def read_csv(
        file_path: str | Path,
        use_pandas: bool = True,
        separator: str = ",",
        **kwargs: Any,
    ) -> list[dict[str, Any]]:
        """Read a CSV file and return a list of dictionaries.

        Every value is read as text so that decimals keep their exact
        digits; empty cells become None.

        Args:
            file_path: Path to the CSV file.
            use_pandas: Use pandas for loading.
            separator: Field separator.
            **kwargs: Additional arguments to pass to pandas.read_csv.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")

        if use_pandas:
            df = pd.read_csv(
                path,
                sep=separator,
                dtype=str,
                keep_default_na=False,
                na_values=[""],
                skipinitialspace=True,
                **kwargs,
            )
            logger.info("Read %d rows from %s", len(df), file_path)
            return CSVManager.frame_to_records(df)

        # fallback to native CSV
        with path.open(newline="", encoding="utf-8") as csvfile:
            reader = csv.DictReader(csvfile, delimiter=separator)
            rows = [
                {k.strip(): (v.strip() or None) if v is not None else None for k, v in r.items()}
                for r in reader
            ]
        logger.info("Read %d rows from %s", len(rows), file_path)
        return rows

    @staticmethod
    def frame_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
        """Convert a DataFrame to row dicts with missing values as None."""
        return df.astype(object).where(df.notna(), None).to_dict(orient="records")

    @staticmethod
    def to_csv_text(
        items: list[dict[str, Any]], include_header: bool = True, separator: str = ","
    ) -> str:
        """Render a list of dictionaries as CSV text."""
        if not items:
            return ""

        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer, fieldnames=list(items[0].keys()), delimiter=separator, lineterminator="\n"
        )
        if include_header:
            writer.writeheader()
        writer.writerows(items)
        return buffer.getvalue()

    @log_calls()
    @staticmethod
    def write_csv(items: list[dict[str, Any]], file_path: str | Path) -> None:
        """Write a list of dictionaries to a CSV file."""
        if not items:
            logger.warning("No items to write to CSV.")
            return

        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fieldnames = items[0].keys()

        with path.open(mode="w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(items)

        logger.info("Wrote %d items to %s", len(items), file_path)
