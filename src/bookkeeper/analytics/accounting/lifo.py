"""LIFO consumption strategy implementation."""

from .strategy import ConsumptionStrategy, Lot


class LIFO(ConsumptionStrategy):
    """LIFO consumption, walks the supply in insertion order."""

    name = "LIFO"

    def scan_order(self, lots: list[Lot]):
        """Earliest lot first."""
        return iter(lots)
