"""Shared fixtures for the bookkeeper tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from bookkeeper import InventoryValuation, Settings, Transaction, TransactionType


def make_transaction(
    tx_type="BUY",
    ticker="AAPL",
    quantity="10",
    price=None,
    fee=None,
    currency="EUR",
    portfolio="main",
    trade_date=datetime(2024, 1, 1),
    valuation=None,
    **ids,
) -> Transaction:
    """Transaction with string amounts converted to Decimal."""
    return Transaction(
        portfolio=portfolio,
        tx_type=TransactionType.parse(tx_type),
        trade_date=trade_date,
        quantity=Decimal(quantity),
        currency=currency,
        ticker=ticker,
        price=None if price is None else Decimal(price),
        fee=None if fee is None else Decimal(fee),
        inventory_valuation=InventoryValuation.parse(valuation),
        **ids,
    )


@pytest.fixture
def tx():
    """Factory fixture building transactions."""
    return make_transaction


@pytest.fixture
def settings():
    """Default engine settings."""
    return Settings()


@pytest.fixture
def transactions_csv(tmp_path):
    """Transaction file with a deposit, two buys, a sale and a dividend."""
    path = tmp_path / "transactions.csv"
    path.write_text(
        "portfolio,ticker,type,valuation,trade_date,quantity,price,fee,currency,"
        "order_id,trade_id,transfer_id\n"
        "main,EUR,DEPOSIT,,2024-01-01 09:00:00,5 000,,,EUR,,,T1\n"
        "main,AAPL,BUY,,2024-01-02 10:00:00,10,100,1,EUR,O1,X1,\n"
        "main,AAPL,BUY,,2024-01-03 10:00:00,10,110,1,EUR,O2,X2,\n"
        "main,AAPL,SELL,LIFO,2024-02-01 10:00:00,5,120,1,EUR,O3,X3,\n"
        "main,AAPL,DIVIDEND,,2024-03-01 10:00:00,15,0.5,,EUR,,X4,\n"
        "other,MSFT,BUY,,2024-01-05 10:00:00,2,300,,EUR,O4,X5,\n",
        encoding="utf-8",
    )
    return path
