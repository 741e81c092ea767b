"""High-level portfolio analyzer orchestrating all components.

Provides simple interface while maintaining component access for advanced users.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import pandas as pd

from bookkeeper.config.logger import get_logger
from bookkeeper.config.settings import Settings
from bookkeeper.data.models.price import MarketPrice
from bookkeeper.data.models.transaction import Transaction

from .core.price_manager import PriceManager
from .core.report import PortfolioReport, ReportBuilder

logger = get_logger(__name__)


class PortfolioAnalyzer:
    """High-level portfolio analyzer orchestrating all components.

    Runs build -> price -> summary and exposes pandas views for renderers.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        settings: Settings | None = None,
        prices: Iterable[MarketPrice] = (),
    ):
        """Initialize analyzer with the transactions and known prices."""
        self.settings = settings or Settings()
        self.transactions = list(transactions)
        self.builder = ReportBuilder(self.settings)
        self.price_manager = PriceManager(self.settings.base_currency, prices)
        self.report: PortfolioReport | None = None

    def compute_analytics(
        self, generated: datetime | None = None, sort: bool = False
    ) -> "PortfolioAnalyzer":
        """Build the report and attach the market prices.

        Returns:
            Self for method chaining
        """
        self.report = self.builder.build(self.transactions, generated)
        self.price_manager.apply(self.report)
        if sort:
            self.report.sort()
        return self

    def _require_report(self) -> PortfolioReport:
        if self.report is None:
            raise ValueError("Analytics not computed. Call compute_analytics() first.")
        return self.report

    def get_position_details(self, include_closed: bool = True) -> pd.DataFrame:
        """Get detailed position information.

        Returns:
            DataFrame with one row per (portfolio, ticker); undefined values are None
        """
        report = self._require_report()
        rows = [
            position.to_dict()
            for position in report.positions()
            if include_closed or position.is_open
        ]
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).astype(object)

    def get_transactions(self) -> pd.DataFrame:
        """Input transactions as a DataFrame, sorted by trade date."""
        rows = [t.to_dict() for t in self.transactions]
        if not rows:
            return pd.DataFrame()
        df = pd.DataFrame(rows).astype(object)
        return df.sort_values("trade_date", kind="stable").reset_index(drop=True)

    def get_totals(self) -> list[dict[str, Any]]:
        """Per-currency totals, one row per currency in alphabetical order.

        A last ``TOTAL <base>`` row holds the totals exchanged into the report
        currency; a column stays None when one of its rates is unknown.
        """
        report = self._require_report()
        columns = report.per_currency_totals()
        rows = []
        for currency in sorted(report.currencies):
            row = {"currency": currency, "exchange_rate": report.exchange_rate(currency)}
            row.update({name: totals.get(currency) for name, totals in columns.items()})
            rows.append(row)
        if rows:
            total = {"currency": f"TOTAL {report.currency}", "exchange_rate": None}
            total.update(report.totals())
            rows.append(total)
        return rows

    def get_portfolio_summary(self) -> dict[str, Any]:
        """Get portfolio overview with the per-currency totals.

        Returns:
            Dictionary with portfolio overview
        """
        report = self._require_report()
        positions = list(report.positions())
        return {
            "portfolio_info": {
                "currency": report.currency,
                "generated": report.generated,
                "portfolios": list(report.portfolios),
                "position_count": sum(1 for p in positions if p.is_open),
                "transaction_count": len(self.transactions),
            },
            "cash": report.cash_in_portfolio,
            "deposits": report.deposits,
            "withdrawals": report.withdrawals,
            "investments": report.investments,
            "market_values": report.market_values,
            "profit_loss": report.profit_loss,
            "exchange_rates": dict(report.exchange_rates),
            "totals": report.totals(),
        }
