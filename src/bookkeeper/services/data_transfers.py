"""Services for transaction import and export."""

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from bookkeeper.analytics.core.bookkeeping import sort_by_trade_date
from bookkeeper.config.logger import get_logger
from bookkeeper.config.settings import Settings, WriteMode
from bookkeeper.data.models.transaction import Transaction
from bookkeeper.data.parsers.transaction_parser import (
    COLUMNS,
    TransactionParser,
    rename_portfolios,
)
from bookkeeper.data.writers.report_writer import ReportWriter

from .service import Service

logger = get_logger(__name__)


def transaction_row(transaction: Transaction) -> dict:
    """Row in the column layout of the transaction files."""
    data = transaction.to_dict()
    data["type"] = data.pop("tx_type")
    data["valuation"] = data.pop("inventory_valuation")
    return {column: data.get(column) for column in COLUMNS}


def merge_transactions(
    batches: Iterable[Iterable[Transaction]], overwrite: bool = False
) -> list[Transaction]:
    """Merge transaction lists, de-duplicating on the external identifiers.

    Records without any identifier are always kept. For duplicates the first
    occurrence wins unless ``overwrite`` is set, in which case the last one
    replaces it in place.
    """
    merged: list[Transaction] = []
    seen: dict[tuple, int] = {}
    duplicates = 0

    for batch in batches:
        for transaction in batch:
            key = transaction.identifiers
            if not any(key):
                merged.append(transaction)
                continue
            if key in seen:
                duplicates += 1
                if overwrite:
                    merged[seen[key]] = transaction
                continue
            seen[key] = len(merged)
            merged.append(transaction)

    if duplicates:
        logger.info("Dropped %d duplicate transactions", duplicates)
    return sort_by_trade_date(merged)


class ImportService(Service):
    """Service for transaction ingestion."""

    def __init__(
        self,
        settings: Settings | None = None,
        parser: TransactionParser | None = None,
        renames: Iterable[str] = (),
    ):
        """Initialize the ingestion service."""
        super().__init__(settings=settings)
        self.parser = parser or TransactionParser(self.settings)
        self.renames = list(renames)

    def load(self, paths: Iterable[str | Path], overwrite: bool = False) -> list[Transaction]:
        """Parse and merge several transaction files."""
        batches = []
        for path in paths:
            transactions = self.parser.parse(path)
            if not transactions:
                logger.warning("No transactions found in file: %s", path)
            batches.append(transactions)

        merged = merge_transactions(batches, overwrite=overwrite)
        if self.renames:
            merged = rename_portfolios(merged, self.renames)
        logger.info("Loaded %d transactions from %d files", len(merged), len(batches))
        return merged


class ExportService(Service):
    """Service for transaction export."""

    def export(
        self,
        transactions: Iterable[Transaction],
        path: str | Path,
        mode: WriteMode | None = None,
        hidden: Iterable[str] = (),
        now: datetime | None = None,
    ) -> Path:
        """Write transactions in the format given by the file suffix."""
        rows = [transaction_row(t) for t in transactions]
        if not rows:
            logger.warning("No transactions to export to %s", path)
        writer = ReportWriter(self.settings, hidden=hidden)
        target = writer.write(rows, path, mode=mode, now=now)
        logger.info("Exported %d transactions to %s", len(rows), target)
        return target

    def render(
        self,
        transactions: Iterable[Transaction],
        fmt: str = "markdown",
        hidden: Iterable[str] = (),
    ) -> str:
        """Render transactions as Markdown or CSV text."""
        rows = [transaction_row(t) for t in transactions]
        return ReportWriter(self.settings, hidden=hidden).render(rows, fmt)
