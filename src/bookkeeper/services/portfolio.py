"""Services computing portfolio reports and maintaining price files."""

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from bookkeeper.analytics.analyzer import PortfolioAnalyzer
from bookkeeper.config.logger import get_logger
from bookkeeper.config.settings import Settings, WriteMode
from bookkeeper.data.access.yf_api import YFinanceAPI
from bookkeeper.data.models.price import MarketPrice
from bookkeeper.data.models.transaction import Transaction
from bookkeeper.data.parsers.price_parser import PriceParser
from bookkeeper.data.writers.report_writer import ReportWriter

from .service import Service

logger = get_logger(__name__)


class PortfolioService(Service):
    """Service for report computation."""

    def __init__(
        self,
        settings: Settings | None = None,
        market_api: YFinanceAPI | None = None,
    ):
        """Initialize the portfolio service."""
        super().__init__(settings=settings)
        self.market_api = market_api or YFinanceAPI()
        self.price_parser = PriceParser(self.settings)

    def load_prices(self, paths: Iterable[str | Path]) -> list[MarketPrice]:
        """Read price files, keeping the newest price per ticker."""
        prices: list[MarketPrice] = []
        for path in paths:
            prices.extend(self.price_parser.parse(path))
        return list(PriceParser.latest(prices).values())

    def download_prices(self, tickers: Iterable[str]) -> list[MarketPrice]:
        """Latest closes from Yahoo Finance; failed tickers are skipped."""
        return self.market_api.fetch_latest_prices(sorted(set(tickers)))

    def analyze(
        self,
        transactions: Iterable[Transaction],
        price_paths: Iterable[str | Path] = (),
        yahoo: bool = False,
        generated: datetime | None = None,
        sort: bool = False,
    ) -> PortfolioAnalyzer:
        """Build the report of ``transactions`` and price its positions.

        With ``yahoo`` the tickers and exchange rates still missing after
        reading the price files are looked up on Yahoo Finance.
        """
        analyzer = PortfolioAnalyzer(
            transactions, self.settings, self.load_prices(price_paths)
        ).compute_analytics(generated, sort=sort)

        if yahoo:
            report = analyzer.report
            missing = [
                p.ticker
                for p in report.positions()
                if p.is_open and p.market_price is None and not p.is_cash
            ]
            downloaded = self.download_prices(missing) if missing else []
            if downloaded:
                analyzer.price_manager.add_prices(downloaded)
                analyzer.price_manager.apply(report)

            # market values priced just now can bring new currencies
            missing_rates = report.missing_exchange_rates()
            if missing_rates:
                analyzer.price_manager.add_prices(
                    self.market_api.fetch_exchange_rates(missing_rates, report.currency)
                )
                analyzer.price_manager.apply(report)
        return analyzer

    def store_price(
        self,
        ticker: str,
        path: str | Path,
        mode: WriteMode = WriteMode.APPEND,
        now: datetime | None = None,
    ) -> MarketPrice:
        """Download the latest price of a ticker and add it to a price file.

        Raises:
            MarketDataError: if no price could be downloaded
        """
        price = self.market_api.fetch_latest_price(ticker)
        ReportWriter(self.settings).write([price.to_dict()], path, mode=mode, now=now)
        logger.info("Stored %s price %s for %s", price.provider, price.unit_price, ticker)
        return price
