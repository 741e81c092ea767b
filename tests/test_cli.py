"""Tests for the bookkeeper command line."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest
from conftest import make_transaction

from bookkeeper import MarketDataError, MarketPrice, ReportBuilder
from bookkeeper.cli import build_parser, main, summary_sections


@pytest.fixture
def prices_csv(tmp_path):
    """Price file with an AAPL close."""
    path = tmp_path / "prices.csv"
    path.write_text("ticker,unit_price,date\nAAPL,125,2024-03-01 00:00:00\n")
    return path


def test_portfolio_to_stdout(transactions_csv, prices_csv, capsys):
    """The position and totals tables are printed as Markdown."""
    status = main(["portfolio", "-i", str(transactions_csv), "-p", str(prices_csv)])

    out = capsys.readouterr().out
    assert status == 0
    assert out.startswith("# Portfolio")
    assert "# Totals" in out
    assert "| AAPL " in out
    assert "1875.00" in out


def test_portfolio_to_file(transactions_csv, prices_csv, tmp_path):
    """The output suffix selects the format, hidden columns are left out."""
    out = tmp_path / "positions.csv"

    status = main(
        [
            "portfolio",
            "-i",
            str(transactions_csv),
            "-p",
            str(prices_csv),
            "-o",
            str(out),
            "--hide",
            "costs,deposits",
            "--portfolio",
            "main",
            "--sort",
        ]
    )

    lines = out.read_text().splitlines()
    assert status == 0
    assert lines[0].startswith("portfolio,ticker,currency,quantity")
    assert "costs" not in lines[0]
    assert [line.split(",")[1] for line in lines[1:]] == ["AAPL", "EUR"]


def test_combine(transactions_csv, tmp_path):
    """Duplicate records of merged files are written once."""
    out = tmp_path / "all.md"

    status = main(
        ["combine", "-i", str(transactions_csv), str(transactions_csv), "-o", str(out)]
    )

    assert status == 0
    rows = [line for line in out.read_text().splitlines() if line.startswith("| ")]
    # header plus six records
    assert len(rows) == 7


def test_show_with_filters(transactions_csv, capsys):
    """Filters and renames apply to the shown transactions."""
    status = main(
        [
            "show",
            "-i",
            str(transactions_csv),
            "--portfolio",
            "other",
            "--rename",
            "other:broker",
            "--from",
            "2024-01-01",
        ]
    )

    out = capsys.readouterr().out
    assert status == 0
    assert "broker" in out
    assert "AAPL" not in out


def test_invalid_input_exits_with_error(tmp_path):
    """Engine errors become exit status 1."""
    path = tmp_path / "bad.csv"
    path.write_text(
        "portfolio,ticker,type,trade_date,quantity,currency\n"
        "main,AAPL,CREDIT,2024-01-01,1,EUR\n"
    )

    assert main(["portfolio", "-i", str(path)]) == 1


def test_missing_input_file(tmp_path):
    """A missing input file is reported, not raised."""
    assert main(["show", "-i", str(tmp_path / "missing.csv")]) == 1


def test_stop_if_exists(transactions_csv, tmp_path):
    """An existing output file stops the run in STOP_IF_EXISTS mode."""
    out = tmp_path / "all.csv"
    out.write_text("keep\n")

    status = main(
        [
            "combine",
            "-i",
            str(transactions_csv),
            "-o",
            str(out),
            "--write-mode",
            "stop_if_exists",
        ]
    )

    assert status == 1
    assert out.read_text() == "keep\n"


def test_invalid_base_currency(transactions_csv):
    """Invalid settings are reported as configuration errors."""
    assert main(["show", "-i", str(transactions_csv), "--base-currency", "XXX1"]) == 1


@patch("bookkeeper.services.portfolio.YFinanceAPI.fetch_latest_price")
def test_price(mock_fetch, tmp_path, capsys):
    """Downloaded prices are appended to the price file."""
    mock_fetch.return_value = MarketPrice(
        "AAPL", Decimal("130.5"), datetime(2024, 3, 1), "yfinance"
    )
    out = tmp_path / "prices.csv"

    status = main(["price", "-t", "AAPL", "-o", str(out)])

    assert status == 0
    assert out.read_text().splitlines()[1] == "AAPL,130.5,2024-03-01 00:00:00,yfinance"
    assert "AAPL: 130.5" in capsys.readouterr().out


@patch("bookkeeper.services.portfolio.YFinanceAPI.fetch_latest_price")
def test_price_failure(mock_fetch, tmp_path):
    """A failed download ends with exit status 1."""
    mock_fetch.side_effect = MarketDataError("No data found for ticker: NOPE")

    assert main(["price", "-t", "NOPE", "-o", str(tmp_path / "prices.csv")]) == 1


def test_no_command_prints_help(capsys):
    """Without a subcommand the help is printed."""
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_combine_requires_output(transactions_csv):
    """combine without an output file is a usage error."""
    with pytest.raises(SystemExit) as exc:
        main(["combine", "-i", str(transactions_csv)])
    assert exc.value.code == 2


def test_parser_options():
    """Shared options are accepted after the subcommand."""
    args = build_parser().parse_args(
        ["portfolio", "-i", "a.csv", "--valuation", "lifo", "--scale", "3", "--yahoo"]
    )
    assert args.valuation == "LIFO"
    assert args.scale == 3
    assert args.yahoo


def test_summary_sections_follow_open_positions():
    """A closed and reopened position lists only the trades since reopening."""
    transactions = [
        make_transaction("BUY", quantity="10", price="100", trade_date=datetime(2024, 1, 1)),
        make_transaction("SELL", quantity="10", price="110", trade_date=datetime(2024, 1, 2)),
        make_transaction("BUY", quantity="5", price="120", trade_date=datetime(2024, 1, 3)),
    ]
    report = ReportBuilder().build(transactions)

    sections = summary_sections(report, show_transactions=True, show_history=True)

    assert [title for title, _rows in sections] == [
        "Portfolio: main",
        "Transactions: main / AAPL",
        "Transaction history: main / AAPL",
        "Transactions: main / EUR",
        "Transaction history: main / EUR",
    ]
    tables = dict(sections)
    assert [row["ticker"] for row in tables["Portfolio: main"]] == ["AAPL", "EUR"]
    assert [row["type"] for row in tables["Transactions: main / AAPL"]] == ["BUY"]
    assert [row["type"] for row in tables["Transaction history: main / AAPL"]] == [
        "BUY",
        "SELL",
        "BUY",
    ]
    assert [row["type"] for row in tables["Transactions: main / EUR"]] == [
        "DEBIT",
        "CREDIT",
        "DEBIT",
    ]


def test_summary_to_stdout(transactions_csv, capsys):
    """Transactions and histories are shown only when asked for."""
    assert main(["summary", "-i", str(transactions_csv), "--portfolio", "main"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("# Portfolio summary")
    assert "## Portfolio: main" in out
    assert "## Transactions:" not in out

    assert main(["summary", "-i", str(transactions_csv), "-r", "-s"]) == 0
    out = capsys.readouterr().out
    assert "## Portfolio: other" in out
    assert "## Transactions: main / AAPL" in out
    assert "## Transaction history: other / EUR" in out
    assert "| DEBIT " in out


def test_summary_to_markdown_file(transactions_csv, tmp_path):
    """The summary is written as a Markdown document."""
    out = tmp_path / "summary.md"

    status = main(["summary", "-i", str(transactions_csv), "-o", str(out), "-r"])

    text = out.read_text()
    assert status == 0
    assert "## Transactions: other / MSFT" in text


def test_summary_rejects_non_markdown_output(transactions_csv, tmp_path):
    """Sectioned output cannot be written as CSV."""
    out = tmp_path / "summary.csv"

    assert main(["summary", "-i", str(transactions_csv), "-o", str(out)]) == 1
    assert not out.exists()
