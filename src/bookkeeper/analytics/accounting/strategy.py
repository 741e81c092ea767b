"""Abstract base class and Lot dataclass for lot consumption strategies."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from .decimals import ZERO


@dataclass
class Lot:
    """Open purchase lot: units still held at one unit price."""

    price: Decimal
    quantity: Decimal

    @property
    def amount(self) -> Decimal:
        """Invested amount still tied up in the lot."""
        return self.price * self.quantity


class ConsumptionStrategy(ABC):
    """Base class for the order in which a sale draws down the lots."""

    name: str = ""

    @abstractmethod
    def scan_order(self, lots: list[Lot]) -> Iterable[Lot]:
        """Yield the lots in the order they are drawn down."""

    def consume(self, lots: list[Lot], quantity: Decimal) -> Decimal:
        """Subtract ``quantity`` units from the lots in scan order.

        A lot that cannot cover the rest is zeroed (never removed) and the
        shortfall carries over to the next lot. The scan stops at the first
        lot left non-negative.

        Returns:
            Units that could not be covered by the supply (zero normally).
        """
        to_consume = quantity
        for lot in self.scan_order(lots):
            remaining = lot.quantity - to_consume
            if remaining >= 0:
                lot.quantity = remaining
                return ZERO
            lot.quantity = ZERO
            to_consume = abs(remaining)
        return to_consume

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
