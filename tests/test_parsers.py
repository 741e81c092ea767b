"""Tests for the transaction and price file parsers."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from bookkeeper import (
    ConfigurationError,
    ExcelManager,
    InvalidTransactionError,
    InvalidTransactionTypeError,
    InventoryValuation,
    MarketDataError,
    PriceParser,
    Settings,
    TransactionParser,
    TransactionType,
    rename_portfolios,
)
from bookkeeper.data.parsers.base import normalize_keys, parse_datetime

D = Decimal

HEADER = "portfolio,ticker,type,valuation,trade_date,quantity,price,fee,currency\n"


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_parse_csv(transactions_csv):
    """Rows become typed transactions sorted by trade date."""
    transactions = TransactionParser().parse(transactions_csv)

    assert len(transactions) == 6
    assert [t.trade_date.day for t in transactions] == [1, 2, 3, 5, 1, 1]
    deposit = transactions[0]
    assert deposit.tx_type is TransactionType.DEPOSIT
    assert deposit.ticker == "EUR"
    assert deposit.quantity == D("5000")
    assert deposit.price is None
    assert deposit.transfer_id == "T1"
    buy = transactions[1]
    assert (buy.quantity, buy.price, buy.fee) == (D("10"), D("100"), D("1"))
    assert buy.identifiers == (None, "X1", "O1")
    assert buy.inventory_valuation is None


def test_parse_logs_start_and_completion(transactions_csv):
    """Parsing a file logs the start and the outcome of the operation."""
    parser = TransactionParser()

    with patch.object(parser, "log_operation_start") as start, patch.object(
        parser, "log_operation_success"
    ) as success:
        parser.parse(transactions_csv)

    start.assert_called_once_with("parse", details=str(transactions_csv))
    success.assert_called_once_with(
        "parse", details=f"6 transactions from {transactions_csv}"
    )


def test_sale_valuation(transactions_csv):
    """An explicit valuation is kept, a missing one takes the default."""
    transactions = TransactionParser(Settings()).parse(transactions_csv)
    sell = next(t for t in transactions if t.tx_type is TransactionType.SELL)
    assert sell.inventory_valuation is InventoryValuation.LIFO

    path = transactions_csv.with_name("sell.csv")
    path.write_text(HEADER + "main,AAPL,SELL,,2024-01-01 00:00:00,1,5,,EUR\n")
    settings = Settings(inventory_valuation=InventoryValuation.LIFO)
    (sell,) = TransactionParser(settings).parse(path)
    assert sell.inventory_valuation is InventoryValuation.LIFO


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        ({"portfolio": "other"}, 1),
        ({"portfolio": "*"}, 6),
        ({"tickers": ["aapl"]}, 4),
        ({"from_date": datetime(2024, 1, 3)}, 4),
        ({"to_date": datetime(2024, 1, 3, 10)}, 3),
        ({"portfolio": "main", "tickers": ["EUR", "MSFT"]}, 1),
    ],
)
def test_filters(transactions_csv, kwargs, expected):
    """Portfolio, ticker and date filters are applied after parsing."""
    assert len(TransactionParser(**kwargs).parse(transactions_csv)) == expected


def test_parse_markdown(tmp_path):
    """A pipe table inside a Markdown document is read."""
    path = _write(
        tmp_path,
        "ledger.md",
        "# Ledger\n\n"
        "| portfolio | ticker | type | trade_date | quantity | price | fee | currency |\n"
        "|-----------|--------|------|------------|----------|-------|-----|----------|\n"
        "| main | AAPL | buy | 2024-01-02 10:00:00 | 3 | 99.5 | | USD |\n"
        "| main | | deposit | 2024-01-01 10:00:00 | 1 000 | | | USD |\n"
        "\nNotes below the table.\n",
    )

    transactions = TransactionParser().parse(path)

    assert [t.tx_type for t in transactions] == [TransactionType.DEPOSIT, TransactionType.BUY]
    assert transactions[0].ticker == "USD"
    assert transactions[0].quantity == D("1000")
    assert transactions[1].fee is None
    assert transactions[1].price == D("99.5")


def test_parse_excel(tmp_path):
    """Excel workbooks are read as text, keeping decimal digits."""
    path = tmp_path / "ledger.xlsx"
    ExcelManager.write_excel(
        [
            {
                "Portfolio": "main",
                "Ticker": "AAPL",
                "Type": "BUY",
                "Trade Date": "2024-01-02 10:00:00",
                "Quantity": "2",
                "Price": "0.1",
                "Currency": "EUR",
            }
        ],
        path,
    )

    (transaction,) = TransactionParser().parse(path)

    assert transaction.price == D("0.1")
    assert transaction.trade_date == datetime(2024, 1, 2, 10)


def test_unknown_type_is_rejected(tmp_path):
    """An unknown type token stops parsing."""
    path = _write(tmp_path, "bad.csv", HEADER + "main,AAPL,SPLIT,,2024-01-01,1,1,,EUR\n")

    with pytest.raises(InvalidTransactionTypeError, match="SPLIT"):
        TransactionParser().parse(path)


@pytest.mark.parametrize(
    "row",
    [
        "main,AAPL,BUY,,2024-01-01,-1,1,,EUR",
        "main,AAPL,BUY,,2024-01-01,abc,1,,EUR",
        "main,AAPL,BUY,,not a date,1,1,,EUR",
        "main,AAPL,BUY,,2024-01-01,1,1,,XYZ",
        ",AAPL,BUY,,2024-01-01,1,1,,EUR",
        "main,AAPL,SELL,HIFO,2024-01-01,1,1,,EUR",
    ],
)
def test_malformed_rows(tmp_path, row):
    """Malformed rows raise InvalidTransactionError."""
    path = _write(tmp_path, "bad.csv", HEADER + row + "\n")

    with pytest.raises(InvalidTransactionError):
        TransactionParser().parse(path)


def test_missing_file():
    """A missing input file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        TransactionParser().parse("does-not-exist.csv")


def test_unsupported_suffix(tmp_path):
    """Only CSV, Excel and Markdown files are supported."""
    path = _write(tmp_path, "ledger.json", "[]")
    with pytest.raises(ConfigurationError):
        TransactionParser().parse(path)


def test_rename_portfolios(transactions_csv):
    """Portfolios are renamed by 'from:to' pairs."""
    transactions = TransactionParser().parse(transactions_csv)

    renamed = rename_portfolios(transactions, ["other:main", "main : broker"])

    assert {t.portfolio for t in renamed} == {"main", "broker"}
    assert sum(t.portfolio == "broker" for t in renamed) == 5


@pytest.mark.parametrize("pair", ["main", "a:b:c", ":b", "a:"])
def test_rename_rejects_malformed_pairs(pair):
    """A rename needs exactly two non-empty names."""
    with pytest.raises(ConfigurationError):
        rename_portfolios([], [pair])


def test_parse_datetime_fallbacks():
    """The configured pattern is tried first, then ISO-8601."""
    pattern = "%d/%m/%Y %H:%M"
    assert parse_datetime("02/01/2024 10:30", pattern) == datetime(2024, 1, 2, 10, 30)
    assert parse_datetime("2024-01-02", pattern) == datetime(2024, 1, 2)
    assert parse_datetime("2024-01-02T10:00:00+01:00", pattern) == datetime(2024, 1, 2, 9)
    with pytest.raises(ValueError):
        parse_datetime("someday", pattern)


def test_normalize_keys():
    """Column names are matched case-insensitively."""
    assert normalize_keys({" Trade Date ": " 2024 ", "Fee": "  "}) == {
        "trade_date": "2024",
        "fee": None,
    }


def test_price_parser(tmp_path):
    """Price files are read and reduced to the newest price per ticker."""
    path = _write(
        tmp_path,
        "prices.csv",
        "ticker,unit_price,date,provider\n"
        "AAPL,120.5,2024-03-01 00:00:00,manual\n"
        "AAPL,118,2024-02-01 00:00:00,manual\n"
        "MSFT,300,,\n",
    )

    prices = PriceParser().parse(path)
    latest = PriceParser.latest(prices)

    assert len(prices) == 3
    assert latest["AAPL"].unit_price == D("120.5")
    assert latest["AAPL"].provider == "manual"
    assert latest["MSFT"].date is None


def test_price_parser_rejects_bad_price(tmp_path):
    """A price that is not a number raises MarketDataError."""
    path = _write(tmp_path, "prices.csv", "ticker,unit_price\nAAPL,n/a\n")
    with pytest.raises(MarketDataError):
        PriceParser().parse(path)
