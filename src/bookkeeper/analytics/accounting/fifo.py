"""FIFO consumption strategy implementation."""

from .strategy import ConsumptionStrategy, Lot


class FIFO(ConsumptionStrategy):
    """FIFO consumption.

    The supply is walked from the most recently opened price level back to
    the earliest one.
    """

    name = "FIFO"

    def scan_order(self, lots: list[Lot]):
        """Newest lot first."""
        return reversed(lots)
