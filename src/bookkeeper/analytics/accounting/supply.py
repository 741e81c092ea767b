"""Lot supply ledger of one position."""

from decimal import Decimal
from typing import ClassVar

from bookkeeper.config.logger import get_logger
from bookkeeper.data.models.transaction import InventoryValuation

from .decimals import ZERO
from .fifo import FIFO
from .lifo import LIFO
from .strategy import ConsumptionStrategy, Lot

logger = get_logger(__name__)


class LotSupply:
    """Ordered map of unit price -> remaining quantity.

    Opening a lot at a price that is already in the supply adds to that lot,
    so the first insertion fixes the position of a price level. Prices match
    on their exact decimal form: 100 and 100.00 are separate lots. Fully
    consumed lots stay in place with zero quantity.
    """

    # Class-level strategy cache to avoid repeated instantiation
    _STRATEGIES: ClassVar[dict[InventoryValuation, ConsumptionStrategy]] = {
        InventoryValuation.FIFO: FIFO(),
        InventoryValuation.LIFO: LIFO(),
    }

    def __init__(self):
        self._lots: dict[tuple, Lot] = {}

    @classmethod
    def strategy_for(cls, valuation: InventoryValuation) -> ConsumptionStrategy:
        """Consumption strategy registered for a valuation."""
        return cls._STRATEGIES[valuation]

    def record_open(self, price: Decimal, quantity: Decimal) -> None:
        """Add ``quantity`` units bought at ``price``."""
        key = price.as_tuple()
        lot = self._lots.get(key)
        if lot is None:
            self._lots[key] = Lot(price, quantity)
        else:
            lot.quantity += quantity

    def consume(self, quantity: Decimal, valuation: InventoryValuation) -> Decimal:
        """Draw ``quantity`` units from the supply.

        Returns:
            Units not covered by the supply. Under-supply is not an error.
        """
        strategy = self.strategy_for(valuation)
        unfilled = strategy.consume(list(self._lots.values()), quantity)
        if unfilled > 0:
            logger.warning(
                "%s sale of %s units exceeds the supply by %s units",
                strategy.name,
                quantity,
                unfilled,
            )
        return unfilled

    @property
    def lots(self) -> list[Lot]:
        """Snapshot of the lots in insertion order."""
        return [Lot(lot.price, lot.quantity) for lot in self._lots.values()]

    @property
    def remaining_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self._lots.values()), start=ZERO)

    @property
    def invested_amount(self) -> Decimal:
        return sum((lot.amount for lot in self._lots.values()), start=ZERO)

    def average_price(self) -> Decimal | None:
        """Weighted average unit price of the remaining units.

        None when nothing is left (no lots, or every lot consumed).
        """
        quantity = self.remaining_quantity
        if quantity == 0:
            return None
        return self.invested_amount / quantity

    def __len__(self) -> int:
        return len(self._lots)

    def __repr__(self) -> str:
        lots = ", ".join(f"{lot.quantity}@{lot.price}" for lot in self._lots.values())
        return f"LotSupply([{lots}])"
