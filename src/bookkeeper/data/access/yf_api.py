"""Module to interact with Yahoo Finance API to fetch market prices."""

import yfinance as yf

from bookkeeper.analytics.accounting.decimals import to_decimal
from bookkeeper.config.decorators import log_api_calls
from bookkeeper.config.logger import get_logger
from bookkeeper.data.models.price import (
    MarketPrice,
    exchange_symbol,
    yahoo_exchange_symbol,
)
from bookkeeper.errors import MarketDataError

logger = get_logger(__name__)

PROVIDER = "yfinance"


class YFinanceAPI:
    """Class to interact with Yahoo Finance API to fetch market prices."""

    @log_api_calls("YFinance")
    def fetch_latest_price(self, ticker: str, period: str = "5d") -> MarketPrice:
        """Fetch the last close of a ticker.

        Raises:
            MarketDataError: if Yahoo Finance returns no data or the request fails
        """
        logger.info("Fetching latest close from Yahoo Finance for ticker: %s", ticker)
        try:
            data = yf.download(
                ticker,
                period=period,
                interval="1d",
                auto_adjust=True,
                progress=False,
            )
        except Exception as e:  # pylint: disable=broad-except
            raise MarketDataError(f"Error fetching data for {ticker}: {e}") from e

        if data is None or data.empty or "Close" not in data:
            raise MarketDataError(f"No data found for ticker: {ticker}")

        closes = data["Close"]
        # recent yfinance versions return one column per ticker
        if closes.ndim > 1:
            closes = closes.iloc[:, 0]
        closes = closes.dropna()
        if closes.empty:
            raise MarketDataError(f"No close price found for ticker: {ticker}")

        date = closes.index[-1]
        if getattr(date, "tzinfo", None) is not None:
            date = date.tz_convert("UTC").tz_localize(None)

        return MarketPrice(
            ticker=ticker,
            unit_price=to_decimal(float(closes.iloc[-1])),
            date=date.to_pydatetime(),
            provider=PROVIDER,
        )

    def fetch_latest_prices(self, tickers) -> list[MarketPrice]:
        """Fetch the last close of several tickers, skipping the failures."""
        if isinstance(tickers, str):
            tickers = [tickers]

        prices = []
        for ticker in tickers:
            try:
                prices.append(self.fetch_latest_price(ticker))
            except MarketDataError as e:
                logger.error("%s", e)
        return prices

    def fetch_exchange_rate(self, currency: str, base_currency: str) -> MarketPrice:
        """Fetch the last rate of ``currency`` in ``base_currency``.

        The price is returned under the ``USD-EUR`` style ticker.

        Raises:
            MarketDataError: if Yahoo Finance has no rate for the pair
        """
        price = self.fetch_latest_price(yahoo_exchange_symbol(currency, base_currency))
        return MarketPrice(
            ticker=exchange_symbol(currency, base_currency),
            unit_price=price.unit_price,
            date=price.date,
            provider=price.provider,
        )

    def fetch_exchange_rates(self, currencies, base_currency: str) -> list[MarketPrice]:
        """Fetch the rates of several currencies, skipping the failures."""
        rates = []
        for currency in currencies:
            try:
                rates.append(self.fetch_exchange_rate(currency, base_currency))
            except MarketDataError as e:
                logger.error("%s", e)
        return rates
