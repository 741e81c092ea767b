"""Tests for the lot supply ledger and its consumption strategies."""

from decimal import Decimal
import unittest

import pytest

from bookkeeper import FIFO, LIFO, InventoryValuation, Lot, LotSupply

D = Decimal


def _supply(*lots):
    supply = LotSupply()
    for price, quantity in lots:
        supply.record_open(D(price), D(quantity))
    return supply


def _snapshot(supply):
    return [(lot.price, lot.quantity) for lot in supply.lots]


class TestLotSupply(unittest.TestCase):
    """Test opening and consuming lots."""

    def setUp(self):
        """Three buys of 10 units at 100, 110 and 120."""
        self.supply = _supply(("100", "10"), ("110", "10"), ("120", "10"))

    def test_fifo_walks_newest_lot_first(self):
        """FIFO consumption starts at the most recently opened price level."""
        unfilled = self.supply.consume(D("15"), InventoryValuation.FIFO)

        self.assertEqual(unfilled, 0)
        self.assertEqual(
            _snapshot(self.supply),
            [(D("100"), D("10")), (D("110"), D("5")), (D("120"), D("0"))],
        )

    def test_lifo_walks_oldest_lot_first(self):
        """LIFO consumption starts at the first opened price level."""
        self.supply.consume(D("15"), InventoryValuation.LIFO)

        self.assertEqual(
            _snapshot(self.supply),
            [(D("100"), D("0")), (D("110"), D("5")), (D("120"), D("10"))],
        )

    def test_consumed_lots_are_kept(self):
        """A fully consumed lot stays in place with zero quantity."""
        self.supply.consume(D("10"), InventoryValuation.FIFO)

        self.assertEqual(len(self.supply), 3)
        self.assertEqual(self.supply.lots[2].quantity, 0)

    def test_open_at_existing_price_merges(self):
        """A second buy at a known price adds to the existing lot."""
        self.supply.record_open(D("100"), D("5"))

        self.assertEqual(len(self.supply), 3)
        self.assertEqual(self.supply.lots[0], Lot(D("100"), D("15")))

    def test_price_match_is_scale_sensitive(self):
        """100.00 is a different price level than 100."""
        self.supply.record_open(D("100.00"), D("5"))

        self.assertEqual(len(self.supply), 4)
        self.assertEqual(self.supply.lots[0], Lot(D("100"), D("10")))
        self.assertEqual(str(self.supply.lots[3].price), "100.00")

        self.supply.consume(D("20"), InventoryValuation.FIFO)
        self.assertEqual(
            _snapshot(self.supply),
            [(D("100"), D("10")), (D("110"), D("5")), (D("120"), D("0")), (D("100"), D("0"))],
        )

    def test_merged_lot_keeps_first_position(self):
        """Merging does not move the lot to the end of the scan order."""
        self.supply.record_open(D("100"), D("5"))
        self.supply.consume(D("12"), InventoryValuation.FIFO)

        self.assertEqual(
            _snapshot(self.supply),
            [(D("100"), D("15")), (D("110"), D("8")), (D("120"), D("0"))],
        )

    def test_oversupply_is_silent(self):
        """Selling more than held zeroes every lot and reports the shortfall."""
        with self.assertLogs("bookkeeper", level="WARNING") as logs:
            unfilled = self.supply.consume(D("35"), InventoryValuation.LIFO)

        self.assertEqual(unfilled, D("5"))
        self.assertTrue(all(lot.quantity == 0 for lot in self.supply.lots))
        self.assertIn("exceeds the supply", logs.output[0])

    def test_average_price(self):
        """Average is the amount-weighted price of the remaining units."""
        self.supply.consume(D("15"), InventoryValuation.FIFO)

        # 10 x 100 + 5 x 110 over 15 units
        self.assertEqual(self.supply.invested_amount, D("1550"))
        self.assertEqual(self.supply.remaining_quantity, D("15"))
        self.assertEqual(self.supply.average_price(), D("1550") / D("15"))

    def test_average_price_of_empty_supply(self):
        """No remaining units means no average."""
        self.assertIsNone(LotSupply().average_price())
        self.supply.consume(D("30"), InventoryValuation.FIFO)
        self.assertIsNone(self.supply.average_price())

    def test_lots_snapshot_is_a_copy(self):
        """Changing a snapshot lot does not change the supply."""
        self.supply.lots[0].quantity = D("0")
        self.assertEqual(self.supply.lots[0].quantity, D("10"))


@pytest.mark.parametrize(
    ("strategy", "expected"),
    [
        (FIFO(), [D("3"), D("1"), D("0")]),
        (LIFO(), [D("0"), D("0"), D("4")]),
    ],
)
def test_strategy_carries_shortfall(strategy, expected):
    """A lot too small for the rest is zeroed and the shortfall moves on."""
    lots = [Lot(D("1"), D("3")), Lot(D("2"), D("2")), Lot(D("3"), D("4"))]

    unfilled = strategy.consume(lots, D("5"))

    assert unfilled == 0
    assert [lot.quantity for lot in lots] == expected


def test_strategy_stops_at_exact_fill():
    """A lot brought exactly to zero ends the scan."""
    lots = [Lot(D("1"), D("3")), Lot(D("2"), D("2"))]

    FIFO().consume(lots, D("2"))

    assert [lot.quantity for lot in lots] == [D("3"), D("0")]
