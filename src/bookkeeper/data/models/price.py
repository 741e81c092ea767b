"""Market price value record."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class MarketPrice:
    """Price of one unit of a product at a point in time."""

    ticker: str
    unit_price: Decimal
    date: datetime | None = None
    provider: str | None = None

    def to_dict(self) -> dict:
        """Row representation used by the price file writers."""
        return {
            "ticker": self.ticker,
            "unit_price": self.unit_price,
            "date": self.date,
            "provider": self.provider,
        }


def exchange_symbol(currency: str, base_currency: str) -> str:
    """Ticker of an exchange rate, e.g. ``USD-EUR`` for USD in EUR."""
    return f"{currency}-{base_currency}"


def yahoo_exchange_symbol(currency: str, base_currency: str) -> str:
    """Yahoo Finance ticker of an exchange rate, e.g. ``USDEUR=X``."""
    return f"{currency}{base_currency}=X"
