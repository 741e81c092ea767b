"""Position aggregation for one (portfolio, ticker) pair.

Every call to ``add_transaction`` recomputes the derived state from the
accumulated transaction lists instead of patching it incrementally. Ledger
files are small, and a full replay keeps zero-crossing resets and lot
merging identical to a fresh run.
"""

from collections.abc import Callable, Iterable
from decimal import Decimal

from bookkeeper.analytics.accounting.cash import Cash
from bookkeeper.analytics.accounting.decimals import (
    HUNDRED,
    ONE,
    ZERO,
    round_money,
    safe_sum,
)
from bookkeeper.analytics.accounting.supply import LotSupply
from bookkeeper.config.logger import get_logger
from bookkeeper.data.models.price import MarketPrice
from bookkeeper.data.models.transaction import (
    InventoryValuation,
    Transaction,
    TransactionType,
)

logger = get_logger(__name__)


def _price(transaction: Transaction) -> Decimal:
    return ONE if transaction.price is None else transaction.price


# Signed quantity change per transaction type; types not listed leave the
# quantity untouched.
QUANTITY_RULES: dict[TransactionType, Callable[[Transaction], Decimal]] = {
    TransactionType.BUY: lambda t: t.quantity,
    TransactionType.DEPOSIT: lambda t: t.quantity,
    TransactionType.SELL: lambda t: -t.quantity,
    TransactionType.WITHDRAWAL: lambda t: -t.quantity,
    TransactionType.FEE: lambda t: -t.quantity,
    TransactionType.DEBIT: lambda t: -(t.quantity * _price(t)),
    TransactionType.CREDIT: lambda t: t.quantity * _price(t),
}

OPENING_TYPES = frozenset(
    {TransactionType.BUY, TransactionType.DEPOSIT, TransactionType.CREDIT}
)
CLOSING_TYPES = frozenset({TransactionType.SELL, TransactionType.WITHDRAWAL})


def quantity_change(transaction: Transaction) -> Decimal:
    """Signed change a transaction applies to the running quantity."""
    rule = QUANTITY_RULES.get(transaction.tx_type)
    return ZERO if rule is None else rule(transaction)


class Position:
    """Aggregated holding of one product or currency within one portfolio.

    Attributes:
        portfolio: Portfolio name
        ticker: Product symbol or currency code
        currency: Settlement currency of the prices
        is_cash: True when the ticker is itself a currency
        quantity: Signed running quantity
        average_price: Weighted average unit price of the open lots; for
            cash positions the cash balance of the whole history
        costs: Lifetime sum of the fees
        deposits: Lifetime sum of deposited quantities
        withdrawals: Lifetime sum of withdrawn quantities
        transactions: Working set since the last zero-crossing
        transaction_history: Every transaction ever added
        market_price: Latest known market price, None if not priced
    """

    _CASH = Cash()

    def __init__(
        self,
        portfolio: str,
        ticker: str,
        currency: str | None = None,
        is_cash: bool = False,
        scale: int = 2,
        default_valuation: InventoryValuation = InventoryValuation.FIFO,
    ):
        self.portfolio = portfolio
        self.ticker = ticker
        self.currency = currency or (ticker if is_cash else None)
        self.is_cash = is_cash
        self.scale = scale
        self.default_valuation = default_valuation

        self.quantity = ZERO
        self.average_price: Decimal | None = None
        self.costs = ZERO
        self.deposits = ZERO
        self.withdrawals = ZERO
        self.transactions: list[Transaction] = []
        self.transaction_history: list[Transaction] = []
        self.supply = LotSupply()
        self.market_price: MarketPrice | None = None

    @classmethod
    def replay(cls, transactions: Iterable[Transaction], **kwargs) -> "Position":
        """Build a fresh position from a transaction list."""
        transactions = list(transactions)
        if not transactions:
            raise ValueError("Cannot replay an empty transaction list")

        first = transactions[0]
        kwargs.setdefault("currency", first.currency)
        position = cls(first.portfolio, first.ticker, **kwargs)
        for transaction in transactions:
            position.add_transaction(transaction)
        return position

    def add_transaction(self, transaction: Transaction) -> None:
        """Append a transaction and recompute the derived values."""
        self.transaction_history.append(transaction)
        self.transactions.append(transaction)
        if self.currency is None:
            self.currency = transaction.currency

        self.quantity += quantity_change(transaction)
        if self.quantity == 0:
            logger.debug(
                "%s/%s closed, resetting %d working transactions",
                self.portfolio,
                self.ticker,
                len(self.transactions),
            )
            self.transactions.clear()

        self._rebuild_supply()
        self._update_average_price()
        self._update_totals()

    def _rebuild_supply(self) -> None:
        self.supply = LotSupply()
        for transaction in self.transactions:
            if transaction.tx_type in OPENING_TYPES:
                if transaction.price is None and not self.is_cash:
                    logger.debug(
                        "%s/%s: %s without price does not open a lot",
                        self.portfolio,
                        self.ticker,
                        transaction.tx_type.value,
                    )
                    continue
                self.supply.record_open(_price(transaction), transaction.quantity)
            elif transaction.tx_type in CLOSING_TYPES:
                valuation = transaction.inventory_valuation or self.default_valuation
                self.supply.consume(transaction.quantity, valuation)

    def _update_average_price(self) -> None:
        if self.is_cash:
            balance = self._CASH.balance(self.transaction_history, self.ticker)
            self.average_price = round_money(balance, self.scale)
        else:
            self.average_price = self.supply.average_price()

    def _update_totals(self) -> None:
        history = self.transaction_history
        self.costs = safe_sum(t.fee for t in history)
        self.deposits = safe_sum(
            t.quantity for t in history if t.tx_type is TransactionType.DEPOSIT
        )
        self.withdrawals = safe_sum(
            t.quantity for t in history if t.tx_type is TransactionType.WITHDRAWAL
        )

    @property
    def is_open(self) -> bool:
        return self.quantity != 0

    @property
    def market_value(self) -> Decimal | None:
        """Quantity at market price, None when no price is known."""
        if self.market_price is None:
            return None
        return round_money(self.quantity * self.market_price.unit_price, self.scale)

    @property
    def invested_amount(self) -> Decimal | None:
        """Quantity at average price; cash positions never carry one."""
        if self.is_cash or self.average_price is None:
            return None
        return round_money(self.quantity * self.average_price, self.scale)

    @property
    def profit_and_loss(self) -> Decimal | None:
        market_value = self.market_value
        invested_amount = self.invested_amount
        if market_value is None or invested_amount is None:
            return None
        return market_value - invested_amount

    @property
    def profit_and_loss_percent(self) -> Decimal | None:
        """Market value as a percentage of the invested amount."""
        market_value = self.market_value
        invested_amount = self.invested_amount
        if market_value is None or invested_amount is None or invested_amount == 0:
            return None
        return round_money(market_value / invested_amount * HUNDRED, self.scale)

    def to_dict(self) -> dict:
        """Flat row for renderers; undefined values stay None."""
        return {
            "portfolio": self.portfolio,
            "ticker": self.ticker,
            "currency": self.currency,
            "quantity": self.quantity,
            "average_price": self.average_price,
            "invested_amount": self.invested_amount,
            "market_price": self.market_price.unit_price if self.market_price else None,
            "market_value": self.market_value,
            "profit_and_loss": self.profit_and_loss,
            "profit_and_loss_percent": self.profit_and_loss_percent,
            "deposits": self.deposits,
            "withdrawals": self.withdrawals,
            "costs": self.costs,
        }

    def __repr__(self) -> str:
        return (
            f"Position(portfolio={self.portfolio!r}, ticker={self.ticker!r}, "
            f"quantity={self.quantity}, average_price={self.average_price})"
        )
