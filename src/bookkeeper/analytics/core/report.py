"""Portfolio report: every position of every portfolio, plus totals."""

from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from decimal import Decimal

from bookkeeper.analytics.accounting.decimals import ONE, ZERO, round_money
from bookkeeper.config.decorators import LoggerMixin, log_performance
from bookkeeper.config.settings import Settings
from bookkeeper.data.models.price import exchange_symbol
from bookkeeper.data.models.transaction import SOURCE_TYPES, Transaction
from bookkeeper.errors import InvalidTransactionTypeError

from .bookkeeping import BookkeepingSynthesizer, sort_by_trade_date
from .position import Position


def _add(totals: dict[str, Decimal], key: str, value: Decimal | None) -> None:
    if value is not None:
        totals[key] = totals.get(key, ZERO) + value


class PortfolioReport:
    """Nested portfolio -> ticker -> Position structure handed to renderers.

    Both levels keep first-seen order unless ``sort`` is called. Totals are
    kept per currency; ``exchange_rates`` (``USD-EUR`` -> rate) converts them
    into the report currency.
    """

    def __init__(
        self, currency: str, generated: datetime | None = None, scale: int = 2
    ):
        self.currency = currency
        self.generated = generated or datetime.now(tz=timezone.utc)
        self.scale = scale
        self.portfolios: dict[str, dict[str, Position]] = {}
        self.exchange_rates: dict[str, Decimal] = {}

    def get(self, portfolio: str, ticker: str) -> Position | None:
        """Position of a ticker, None if the portfolio never held it."""
        return self.portfolios.get(portfolio, {}).get(ticker)

    def positions(self) -> Iterator[Position]:
        """All positions in report order."""
        for products in self.portfolios.values():
            yield from products.values()

    def sort(self) -> "PortfolioReport":
        """Order portfolios and tickers alphabetically."""
        self.portfolios = {
            name: dict(sorted(products.items()))
            for name, products in sorted(self.portfolios.items())
        }
        return self

    @property
    def cash_in_portfolio(self) -> dict[str, Decimal]:
        """Cash held per currency."""
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_cash:
                _add(totals, position.ticker, position.quantity)
        return totals

    @property
    def deposits(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_cash:
                _add(totals, position.ticker, position.deposits)
        return totals

    @property
    def withdrawals(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_cash:
                _add(totals, position.ticker, position.withdrawals)
        return totals

    @property
    def investments(self) -> dict[str, Decimal]:
        """Invested amount of the open positions per settlement currency."""
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_open:
                _add(totals, position.currency, position.invested_amount)
        return totals

    @property
    def market_values(self) -> dict[str, Decimal]:
        """Market value of the open positions per settlement currency."""
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_open:
                _add(totals, position.currency, position.market_value)
        return totals

    @property
    def profit_loss(self) -> dict[str, Decimal]:
        """P&L of the open product positions per settlement currency."""
        totals: dict[str, Decimal] = {}
        for position in self.positions():
            if position.is_open and not position.is_cash:
                _add(totals, position.currency, position.profit_and_loss)
        return totals

    def per_currency_totals(self) -> dict[str, dict[str, Decimal]]:
        """Every aggregate by name, each one per currency."""
        return {
            "cash": self.cash_in_portfolio,
            "deposits": self.deposits,
            "withdrawals": self.withdrawals,
            "invested_amount": self.investments,
            "market_value": self.market_values,
            "profit_and_loss": self.profit_loss,
        }

    @property
    def currencies(self) -> list[str]:
        """Currencies appearing in any total, in first-seen order."""
        seen: dict[str, None] = {}
        for totals in self.per_currency_totals().values():
            seen.update(dict.fromkeys(totals))
        return list(seen)

    def exchange_rate(self, currency: str) -> Decimal | None:
        """Rate of one unit of ``currency`` in the report currency."""
        if currency == self.currency:
            return ONE
        return self.exchange_rates.get(exchange_symbol(currency, self.currency))

    def missing_exchange_rates(self) -> list[str]:
        """Currencies of the totals without a known rate."""
        return [c for c in self.currencies if self.exchange_rate(c) is None]

    def exchange_and_sum(self, values: dict[str, Decimal]) -> Decimal | None:
        """Sum per-currency values in the report currency.

        None when any of the currencies has no exchange rate.
        """
        total = ZERO
        for currency, value in values.items():
            rate = self.exchange_rate(currency)
            if rate is None:
                return None
            total += value * rate
        return round_money(total, self.scale)

    def totals(self) -> dict[str, Decimal | None]:
        """Every aggregate converted into the report currency."""
        return {
            name: self.exchange_and_sum(values)
            for name, values in self.per_currency_totals().items()
        }

    def __repr__(self) -> str:
        counts = {name: len(products) for name, products in self.portfolios.items()}
        return f"PortfolioReport(currency={self.currency!r}, positions={counts})"


class ReportBuilder(LoggerMixin):
    """Fans a transaction list out into positions.

    Runs in two passes: the cash legs of the whole list are generated
    first, then source records and legs are merged in trade-date order and
    replayed per (portfolio, ticker).
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.synthesizer = BookkeepingSynthesizer()

    def validate(self, transactions: Iterable[Transaction]) -> None:
        """Reject types that must never reach the engine from source input."""
        for transaction in transactions:
            if transaction.tx_type not in SOURCE_TYPES:
                raise InvalidTransactionTypeError(
                    getattr(transaction.tx_type, "value", transaction.tx_type),
                    context=(
                        f"portfolio '{transaction.portfolio}', "
                        f"ticker '{transaction.ticker}', "
                        f"trade date {transaction.trade_date}"
                    ),
                )

    @log_performance()
    def build(
        self, transactions: Iterable[Transaction], generated: datetime | None = None
    ) -> PortfolioReport:
        """Compute every position of the transaction list.

        Raises:
            InvalidTransactionTypeError: for UNKNOWN or synthetic types in the input
        """
        transactions = list(transactions)
        self.validate(transactions)

        legs = self.synthesizer.generate(transactions)

        groups: dict[str, dict[str, list[Transaction]]] = {}
        for transaction in [*transactions, *legs]:
            products = groups.setdefault(transaction.portfolio, {})
            products.setdefault(transaction.ticker, [])

        for transaction in sort_by_trade_date([*transactions, *legs]):
            groups[transaction.portfolio][transaction.ticker].append(transaction)

        report = PortfolioReport(
            self.settings.base_currency, generated, scale=self.settings.scale
        )
        for portfolio, products in groups.items():
            report.portfolios[portfolio] = {
                ticker: self._replay(portfolio, ticker, history)
                for ticker, history in products.items()
            }

        self.logger.info(
            "Report built from %d transactions (%d synthetic) into %d portfolios",
            len(transactions),
            len(legs),
            len(report.portfolios),
        )
        return report

    def _replay(
        self, portfolio: str, ticker: str, history: list[Transaction]
    ) -> Position:
        is_cash = self.settings.currencies.is_currency(ticker)
        position = Position(
            portfolio,
            ticker,
            currency=ticker if is_cash else history[0].currency,
            is_cash=is_cash,
            scale=self.settings.scale,
            default_valuation=self.settings.inventory_valuation,
        )
        for transaction in history:
            position.add_transaction(transaction)
        return position
