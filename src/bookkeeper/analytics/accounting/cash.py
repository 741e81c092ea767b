"""Cash valuation used by currency positions."""

from collections.abc import Iterable
from decimal import Decimal

from bookkeeper.data.models.transaction import Transaction, TransactionType

from .decimals import ONE, ZERO

_INFLOWS = frozenset(
    {
        TransactionType.SELL,
        TransactionType.DEPOSIT,
        TransactionType.DIVIDEND,
        TransactionType.CREDIT,
    }
)
_OUTFLOWS = frozenset(
    {
        TransactionType.FEE,
        TransactionType.WITHDRAWAL,
        TransactionType.BUY,
        TransactionType.DEBIT,
    }
)


class Cash:
    """Cash valuation: a currency unit is worth itself.

    Every transaction in the history of a currency position is mapped to a
    signed cash amount and the amounts are summed.
    """

    def value_of(self, transaction: Transaction, ticker: str) -> Decimal:
        """Signed cash amount a transaction contributes to ``ticker``."""
        price = ONE if transaction.price is None else transaction.price
        tx_type = transaction.tx_type

        if tx_type in _INFLOWS:
            return transaction.quantity * price
        if tx_type in _OUTFLOWS:
            return -(transaction.quantity * price)
        if tx_type is TransactionType.EXCHANGE:
            if transaction.ticker == ticker:
                return -transaction.quantity
            return transaction.quantity * price
        return ZERO

    def balance(self, transactions: Iterable[Transaction], ticker: str) -> Decimal:
        """Sum of the cash amounts of the transactions."""
        return sum((self.value_of(t, ticker) for t in transactions), start=ZERO)
