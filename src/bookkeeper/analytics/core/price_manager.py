"""Centralized market price management.

Holds the latest price per ticker, attaches it to report positions and
fills the exchange rates of the report totals.
"""

from collections.abc import Iterable

from bookkeeper.analytics.accounting.decimals import ONE
from bookkeeper.config.logger import get_logger
from bookkeeper.data.models.price import (
    MarketPrice,
    exchange_symbol,
    yahoo_exchange_symbol,
)

from .report import PortfolioReport

logger = get_logger(__name__)


class PriceManager:
    """Latest market price per ticker.

    Cash positions in the base currency are priced at 1 without a lookup.
    Exchange rates are prices of ``USD-EUR`` or ``USDEUR=X`` style tickers.
    """

    def __init__(self, base_currency: str, prices: Iterable[MarketPrice] = ()):
        """Initialize with the report currency and known prices."""
        self.base_currency = base_currency
        self._prices: dict[str, MarketPrice] = {}
        self.add_prices(prices)

    def add_prices(self, prices: Iterable[MarketPrice]) -> None:
        """Register prices, a newer price of a ticker replaces the older one.

        A dated price is never replaced by an undated one.
        """
        for price in prices:
            current = self._prices.get(price.ticker)
            if (
                current is None
                or current.date is None
                or (price.date is not None and price.date >= current.date)
            ):
                self._prices[price.ticker] = price

    def get_price(self, ticker: str) -> MarketPrice | None:
        """Price of a ticker, None if unknown."""
        if ticker == self.base_currency:
            return self._prices.get(ticker) or MarketPrice(ticker, ONE, provider="base")
        return self._prices.get(ticker)

    def get_available_tickers(self) -> list[str]:
        """Get list of all priced tickers."""
        return sorted(self._prices)

    def get_exchange_rate(self, currency: str, base_currency: str) -> MarketPrice | None:
        """Price of one unit of ``currency`` in ``base_currency``, None if unknown."""
        return self._prices.get(exchange_symbol(currency, base_currency)) or self._prices.get(
            yahoo_exchange_symbol(currency, base_currency)
        )

    def apply(self, report: PortfolioReport) -> PortfolioReport:
        """Attach the known prices to every position and the exchange rates to the report."""
        missing = set()
        for position in report.positions():
            price = self.get_price(position.ticker)
            position.market_price = price
            if price is None and position.is_open:
                missing.add(position.ticker)

        if missing:
            logger.warning("No market price for: %s", ", ".join(sorted(missing)))

        for currency in report.currencies:
            if currency == report.currency:
                continue
            rate = self.get_exchange_rate(currency, report.currency)
            if rate is not None:
                symbol = exchange_symbol(currency, report.currency)
                report.exchange_rates[symbol] = rate.unit_price

        missing_rates = report.missing_exchange_rates()
        if missing_rates:
            logger.warning(
                "No exchange rate to %s for: %s", report.currency, ", ".join(missing_rates)
            )
        return report
