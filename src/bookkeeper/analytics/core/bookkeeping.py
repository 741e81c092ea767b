"""Synthetic cash legs that keep the currency positions balanced.

A stock purchase moves money as well as shares. Source files only record
the share side, so the missing cash side is generated here:

    BUY  10 x 5 EUR, fee 0.05  ->  DEBIT 10 x 5 EUR, FEE 0.05 EUR
    SELL 10 x 5 EUR, fee 0.05  ->  CREDIT 10 x 5 EUR, FEE 0.05 EUR
    DIVIDEND 10 x 0.4 EUR      ->  CREDIT 10 x 0.4 EUR

The legs keep quantity and price of the source record and are booked on the
position whose ticker is the settlement currency.
"""

from collections.abc import Iterable

from bookkeeper.analytics.accounting.decimals import ONE
from bookkeeper.config.decorators import LoggerMixin
from bookkeeper.data.models.transaction import Transaction, TransactionType

LEG_TYPES = {
    TransactionType.BUY: TransactionType.DEBIT,
    TransactionType.SELL: TransactionType.CREDIT,
    TransactionType.DIVIDEND: TransactionType.CREDIT,
}


def sort_by_trade_date(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Stable sort, ties keep their input order."""
    return sorted(transactions, key=lambda t: t.trade_date)


class BookkeepingSynthesizer(LoggerMixin):
    """Generates the offsetting cash transactions of a transaction list."""

    def legs_for(self, transaction: Transaction) -> list[Transaction]:
        """Cash legs implied by one source transaction."""
        legs = []

        leg_type = LEG_TYPES.get(transaction.tx_type)
        # a trade settled in its own currency has no separate cash side
        if leg_type is not None and transaction.ticker != transaction.currency:
            legs.append(
                transaction.with_changes(
                    tx_type=leg_type,
                    ticker=transaction.currency,
                    fee=None,
                    inventory_valuation=None,
                )
            )

        if transaction.has_fee:
            legs.append(
                transaction.with_changes(
                    tx_type=TransactionType.FEE,
                    ticker=transaction.currency,
                    quantity=transaction.fee,
                    price=ONE,
                    fee=None,
                    inventory_valuation=None,
                )
            )

        return legs

    def generate(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """All cash legs of the list, sorted by trade date."""
        legs = [leg for t in transactions for leg in self.legs_for(t)]
        self.logger.debug("Generated %d bookkeeping transactions", len(legs))
        return sort_by_trade_date(legs)
