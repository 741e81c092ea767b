"""Currency codes known to the bookkeeper.

A ticker that matches one of these codes is a cash position, every other
ticker is a product (stock, fund, crypto coin, ...).
"""

from collections.abc import Iterable

ISO_CURRENCIES = frozenset(
    {
        "AED", "ALL", "ARS", "AUD", "BAM", "BGN", "BHD", "BOB", "BRL", "BYN",
        "CAD", "CHF", "CLP", "CNY", "COP", "CRC", "CZK", "DKK", "DOP", "DZD",
        "EGP", "EUR", "GBP", "GTQ", "HKD", "HNL", "HUF", "IDR", "ILS", "INR",
        "IQD", "ISK", "JOD", "JPY", "KRW", "KWD", "LBP", "LYD", "MAD", "MKD",
        "MXN", "MYR", "NIO", "NOK", "NZD", "OMR", "PAB", "PEN", "PHP", "PLN",
        "PYG", "QAR", "RON", "RSD", "RUB", "SAR", "SDG", "SEK", "SGD", "SVC",
        "SYP", "THB", "TND", "TRY", "TWD", "UAH", "USD", "UYU", "VES", "VND",
        "YER", "ZAR",
    }
)  # fmt: skip


class CurrencyRegistry:
    """Decides whether a ticker denotes a currency."""

    def __init__(self, extra: Iterable[str] = ()):
        self.codes = ISO_CURRENCIES | {code.strip().upper() for code in extra if code}

    def is_currency(self, ticker: str | None) -> bool:
        """Return True if the ticker is a currency code."""
        return ticker is not None and ticker.strip().upper() in self.codes

    def __contains__(self, ticker) -> bool:
        return self.is_currency(ticker)


DEFAULT_REGISTRY = CurrencyRegistry()


def is_currency(ticker: str | None) -> bool:
    """Check a ticker against the ISO 4217 list."""
    return DEFAULT_REGISTRY.is_currency(ticker)
