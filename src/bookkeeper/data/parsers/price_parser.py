"""Parser for market price files."""

from collections.abc import Iterable
from decimal import InvalidOperation
from pathlib import Path

from bookkeeper.analytics.accounting.decimals import to_decimal
from bookkeeper.config.decorators import log_calls
from bookkeeper.config.logger import get_logger
from bookkeeper.config.settings import Settings
from bookkeeper.data.models.price import MarketPrice
from bookkeeper.errors import MarketDataError

from .base import parse_datetime, read_rows

logger = get_logger(__name__)

PRICE_COLUMNS = ("ticker", "unit_price", "date", "provider")


class PriceParser:
    """Reads price histories with the columns ticker, unit_price, date, provider."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    @log_calls()
    def parse(self, path: str | Path) -> list[MarketPrice]:
        """Parse a price file in file order.

        Raises:
            MarketDataError: on a row without ticker or with an invalid price or date
        """
        prices = []
        for line, row in enumerate(read_rows(path), start=2):
            if not row.get("ticker"):
                raise MarketDataError(f"{path}, row {line}: missing ticker")

            raw_price = row.get("unit_price", row.get("price"))
            try:
                unit_price = to_decimal(raw_price)
            except InvalidOperation:
                unit_price = None
            if unit_price is None:
                raise MarketDataError(f"{path}, row {line}: invalid price '{raw_price}'")

            date = None
            if row.get("date"):
                try:
                    date = parse_datetime(row["date"], self.settings.date_pattern)
                except ValueError as e:
                    raise MarketDataError(f"{path}, row {line}: {e}") from e

            prices.append(
                MarketPrice(
                    ticker=str(row["ticker"]).strip().upper(),
                    unit_price=unit_price,
                    date=date,
                    provider=row.get("provider"),
                )
            )

        logger.info("Parsed %d prices from %s", len(prices), path)
        return prices

    @staticmethod
    def latest(prices: Iterable[MarketPrice]) -> dict[str, MarketPrice]:
        """Newest price per ticker; on equal dates the later row wins."""
        result: dict[str, MarketPrice] = {}
        for price in prices:
            current = result.get(price.ticker)
            if (
                current is None
                or current.date is None
                or (price.date is not None and price.date >= current.date)
            ):
                result[price.ticker] = price
        return result
