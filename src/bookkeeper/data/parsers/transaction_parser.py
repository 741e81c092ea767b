"""Parser turning transaction files into Transaction records."""

from collections.abc import Iterable
from datetime import datetime
from decimal import InvalidOperation
from pathlib import Path
from typing import Any

from bookkeeper.analytics.accounting.decimals import to_decimal
from bookkeeper.analytics.core.bookkeeping import sort_by_trade_date
from bookkeeper.config.decorators import LoggerMixin, log_calls
from bookkeeper.config.settings import Settings
from bookkeeper.data.models.transaction import (
    InventoryValuation,
    Transaction,
    TransactionType,
)
from bookkeeper.errors import (
    BookkeeperError,
    ConfigurationError,
    InvalidTransactionError,
)

from .base import parse_datetime, read_rows

ALL_PORTFOLIOS = "*"

COLUMNS = (
    "portfolio",
    "ticker",
    "type",
    "valuation",
    "trade_date",
    "quantity",
    "price",
    "fee",
    "currency",
    "order_id",
    "trade_id",
    "transfer_id",
)

# Alternative headers accepted in source files
ALIASES = {
    "tx_type": "type",
    "transaction_type": "type",
    "inventory_valuation": "valuation",
    "date": "trade_date",
    "unit_price": "price",
}

CLOSING_TYPES = frozenset({TransactionType.SELL, TransactionType.WITHDRAWAL})


def parse_renames(replaces: Iterable[str]) -> dict[str, str]:
    """Parse ``from:to`` pairs into a mapping.

    Raises:
        ConfigurationError: if a pair does not have exactly two non-empty names
    """
    mapping = {}
    for pair in replaces:
        parts = [part.strip() for part in pair.split(":")]
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"Invalid portfolio rename '{pair}', expected 'from:to'")
        mapping[parts[0]] = parts[1]
    return mapping


def rename_portfolios(
    transactions: Iterable[Transaction], replaces: Iterable[str]
) -> list[Transaction]:
    """Rename portfolios according to ``from:to`` pairs."""
    mapping = parse_renames(replaces)
    return [
        t.with_changes(portfolio=mapping[t.portfolio]) if t.portfolio in mapping else t
        for t in transactions
    ]


class TransactionParser(LoggerMixin):
    """Reads CSV, Excel and Markdown transaction files.

    Attributes:
        settings: Engine settings (default valuation, date pattern, currencies)
        portfolio: Keep only this portfolio, None or '*' keeps all
        tickers: Keep only these tickers, empty keeps all
        from_date: Keep transactions on or after this date
        to_date: Keep transactions on or before this date
    """

    def __init__(
        self,
        settings: Settings | None = None,
        portfolio: str | None = None,
        tickers: Iterable[str] = (),
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ):
        self.settings = settings or Settings()
        self.portfolio = portfolio
        self.tickers = {t.strip().upper() for t in tickers if t.strip()}
        self.from_date = from_date
        self.to_date = to_date

    @log_calls()
    def parse(self, path: str | Path) -> list[Transaction]:
        """Parse a file, apply the filters and sort by trade date.

        Raises:
            FileNotFoundError: if the file does not exist
            InvalidTransactionError: on a malformed row
            InvalidTransactionTypeError: on an unknown type token
        """
        self.log_operation_start("parse", details=str(path))
        rows = read_rows(path)
        transactions = self.parse_rows(rows, source=str(path))
        self.log_operation_success(
            "parse", details=f"{len(transactions)} transactions from {path}"
        )
        return transactions

    def parse_rows(
        self, rows: Iterable[dict[str, Any]], source: str = "<rows>"
    ) -> list[Transaction]:
        """Convert row dicts with normalized keys to filtered, sorted transactions."""
        transactions = []
        for line, row in enumerate(rows, start=2):
            if all(value is None for value in row.values()):
                continue
            try:
                transactions.append(self.to_transaction(row))
            except BookkeeperError as e:
                self.logger.error("%s, row %d: %s", source, line, e)
                raise
        return sort_by_trade_date(self.apply_filters(transactions))

    def to_transaction(self, row: dict[str, Any]) -> Transaction:
        """Build a single transaction from a row."""
        row = {ALIASES.get(key, key): value for key, value in row.items()}

        portfolio = self._required(row, "portfolio")
        currency = self._required(row, "currency").upper()
        if not self.settings.currencies.is_currency(currency):
            raise InvalidTransactionError(f"Unknown currency: '{currency}'")

        tx_type = TransactionType.parse(self._required(row, "type"))
        ticker = (row.get("ticker") or currency).strip().upper()

        try:
            trade_date = parse_datetime(
                self._required(row, "trade_date"), self.settings.date_pattern
            )
        except ValueError as e:
            raise InvalidTransactionError(str(e)) from e

        quantity = self._decimal(row, "quantity", required=True)
        if quantity < 0:
            raise InvalidTransactionError(f"Quantity must not be negative: {quantity}")

        valuation = InventoryValuation.parse(row.get("valuation"))
        if tx_type in CLOSING_TYPES:
            valuation = valuation or self.settings.inventory_valuation
        else:
            valuation = None

        return Transaction(
            portfolio=portfolio,
            tx_type=tx_type,
            trade_date=trade_date,
            quantity=quantity,
            currency=currency,
            ticker=ticker,
            price=self._decimal(row, "price"),
            fee=self._decimal(row, "fee"),
            inventory_valuation=valuation,
            transfer_id=self._text(row, "transfer_id"),
            trade_id=self._text(row, "trade_id"),
            order_id=self._text(row, "order_id"),
        )

    def apply_filters(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Keep the transactions matching portfolio, tickers and date range."""
        result = []
        for t in transactions:
            if self.portfolio not in (None, ALL_PORTFOLIOS) and t.portfolio != self.portfolio:
                continue
            if self.tickers and t.ticker not in self.tickers:
                continue
            if self.from_date is not None and t.trade_date < self.from_date:
                continue
            if self.to_date is not None and t.trade_date > self.to_date:
                continue
            result.append(t)
        return result

    @staticmethod
    def _text(row: dict[str, Any], key: str) -> str | None:
        value = row.get(key)
        if value is None:
            return None
        return str(value).strip() or None

    @classmethod
    def _required(cls, row: dict[str, Any], key: str) -> str:
        value = cls._text(row, key)
        if value is None:
            raise InvalidTransactionError(f"Missing mandatory column '{key}'")
        return value

    @staticmethod
    def _decimal(row: dict[str, Any], key: str, required: bool = False):
        try:
            value = to_decimal(row.get(key))
        except (InvalidOperation, ValueError):
            raise InvalidTransactionError(
                f"Invalid number in column '{key}': '{row.get(key)}'"
            ) from None
        if value is None and required:
            raise InvalidTransactionError(f"Missing mandatory column '{key}'")
        return value
