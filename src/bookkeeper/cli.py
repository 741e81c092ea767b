"""Command line interface of the bookkeeper."""

import argparse
import os
import sys

from bookkeeper.config.logger import get_logger, setup_logging
from bookkeeper.config.settings import Settings, WriteMode
from bookkeeper.data.models.transaction import InventoryValuation
from bookkeeper.data.parsers.base import parse_datetime
from bookkeeper.data.parsers.transaction_parser import TransactionParser
from bookkeeper.data.writers.report_writer import ReportWriter
from bookkeeper.errors import BookkeeperError, ConfigurationError
from bookkeeper.services.data_transfers import (
    ExportService,
    ImportService,
    transaction_row,
)
from bookkeeper.services.portfolio import PortfolioService

logger = get_logger(__name__)


def _split(values: list[str] | None) -> list[str]:
    """Flatten repeated and comma separated option values."""
    result = []
    for value in values or []:
        result.extend(v.strip() for v in value.split(",") if v.strip())
    return result


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with the command line overrides applied."""
    return Settings.from_env().with_overrides(
        inventory_valuation=InventoryValuation.parse(args.valuation),
        base_currency=args.base_currency.upper() if args.base_currency else None,
        scale=args.scale,
        write_mode=WriteMode.parse(args.write_mode) if args.write_mode else None,
    )


def _date(value: str | None, settings: Settings):
    if value is None:
        return None
    try:
        return parse_datetime(value, settings.date_pattern)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def load_transactions(
    args: argparse.Namespace, settings: Settings, overwrite: bool = False
):
    """Parse, filter, merge and rename the input files."""
    parser = TransactionParser(
        settings,
        portfolio=args.portfolio,
        tickers=_split(args.tickers),
        from_date=_date(args.from_date, settings),
        to_date=_date(args.to_date, settings),
    )
    service = ImportService(settings, parser=parser, renames=_split(args.rename))
    return service.load(args.input, overwrite=overwrite)


def _emit(rows, args, settings: Settings, title: str | None = None) -> None:
    writer = ReportWriter(settings, hidden=_split(args.hide), title=title)
    if args.output:
        target = writer.write(rows, args.output)
        logger.info("Output written to %s", target)
    else:
        sys.stdout.write(writer.render(rows, "markdown"))


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Print or write the parsed transactions."""
    transactions = load_transactions(args, settings)
    _emit([transaction_row(t) for t in transactions], args, settings)
    return 0


def cmd_combine(args: argparse.Namespace, settings: Settings) -> int:
    """Merge several transaction files into one."""
    transactions = load_transactions(args, settings, overwrite=args.overwrite)
    ExportService(settings).export(transactions, args.output, hidden=_split(args.hide))
    return 0


def cmd_portfolio(args: argparse.Namespace, settings: Settings) -> int:
    """Compute the positions and write the position table."""
    transactions = load_transactions(args, settings)
    analyzer = PortfolioService(settings).analyze(
        transactions, price_paths=args.prices or (), yahoo=args.yahoo, sort=args.sort
    )
    rows = [
        p.to_dict()
        for p in analyzer.report.positions()
        if p.is_open or not args.open_only
    ]
    _emit(rows, args, settings, title="Portfolio")
    if not args.output:
        sys.stdout.write("\n")
        sys.stdout.write(ReportWriter(settings, title="Totals").render(analyzer.get_totals()))
    return 0


def summary_sections(report, show_transactions: bool = False, show_history: bool = False):
    """Titled tables of the open positions per portfolio.

    Open positions can be followed by their working transactions and their
    full transaction history.
    """
    sections = []
    for portfolio, products in report.portfolios.items():
        positions = [p for p in products.values() if p.transactions]
        sections.append((f"Portfolio: {portfolio}", [p.to_dict() for p in positions]))
        for position in positions:
            name = f"{portfolio} / {position.ticker}"
            if show_transactions:
                sections.append(
                    (f"Transactions: {name}", [transaction_row(t) for t in position.transactions])
                )
            if show_history:
                sections.append(
                    (
                        f"Transaction history: {name}",
                        [transaction_row(t) for t in position.transaction_history],
                    )
                )
    return sections


def cmd_summary(args: argparse.Namespace, settings: Settings) -> int:
    """Print or write the open positions with their transactions."""
    transactions = load_transactions(args, settings)
    analyzer = PortfolioService(settings).analyze(
        transactions, price_paths=args.prices or (), sort=args.sort
    )
    sections = summary_sections(
        analyzer.report, args.show_transactions, args.show_transaction_history
    )
    writer = ReportWriter(settings, hidden=_split(args.hide), title="Portfolio summary")
    if args.output:
        target = writer.write_sections(sections, args.output)
        logger.info("Output written to %s", target)
    else:
        sys.stdout.write(writer.render_sections(sections))
    return 0


def cmd_price(args: argparse.Namespace, settings: Settings) -> int:
    """Download the latest price of tickers and append them to a price file."""
    service = PortfolioService(settings)
    mode = WriteMode.parse(args.write_mode) if args.write_mode else WriteMode.APPEND
    for ticker in _split(args.ticker):
        price = service.store_price(ticker, args.output, mode=mode)
        sys.stdout.write(f"{price.ticker}: {price.unit_price} ({price.date})\n")
    return 0


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--portfolio", help="Only this portfolio ('*' for all)")
    common.add_argument(
        "--tickers", action="append", help="Comma-separated tickers to keep"
    )
    common.add_argument("--from", dest="from_date", help="Keep transactions from this date")
    common.add_argument("--to", dest="to_date", help="Keep transactions up to this date")
    common.add_argument(
        "--rename", action="append", help="Rename a portfolio, 'from:to' (repeatable)"
    )
    common.add_argument(
        "--valuation",
        choices=[v.value for v in InventoryValuation],
        type=str.upper,
        help="Default inventory valuation of sales",
    )
    common.add_argument("--base-currency", help="Report currency (default: EUR)")
    common.add_argument("--scale", type=int, help="Decimal places of amounts")
    common.add_argument(
        "--write-mode",
        choices=[m.value for m in WriteMode],
        type=str.upper,
        help="Behaviour when the output file exists",
    )
    common.add_argument("--hide", action="append", help="Comma-separated columns to hide")
    common.add_argument("-o", "--output", help="Output file (.md, .csv, .xlsx)")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return common


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with one subcommand per operation."""
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="bookkeeper",
        description="Portfolio bookkeeping from transaction files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s show -i trades.csv                      # Print the parsed transactions
  %(prog)s combine -i a.csv b.xlsx -o all.csv      # Merge and de-duplicate files
  %(prog)s portfolio -i all.csv -p prices.csv      # Position table
  %(prog)s summary -i all.csv -r -s               # Positions with their transactions
  %(prog)s price -t AAPL -o prices.csv             # Append the latest close
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser("show", parents=[common], help="Show transactions")
    show_parser.add_argument("-i", "--input", nargs="+", required=True, help="Input files")
    show_parser.set_defaults(func=cmd_show)

    combine_parser = subparsers.add_parser(
        "combine", parents=[common], help="Merge transaction files"
    )
    combine_parser.add_argument("-i", "--input", nargs="+", required=True, help="Input files")
    combine_parser.add_argument(
        "--overwrite", action="store_true", help="Later duplicates replace earlier ones"
    )
    combine_parser.set_defaults(func=cmd_combine)

    portfolio_parser = subparsers.add_parser(
        "portfolio", parents=[common], help="Compute the positions"
    )
    portfolio_parser.add_argument(
        "-i", "--input", nargs="+", required=True, help="Input files"
    )
    portfolio_parser.add_argument("-p", "--prices", nargs="+", help="Price files")
    portfolio_parser.add_argument(
        "--yahoo", action="store_true", help="Download missing prices from Yahoo Finance"
    )
    portfolio_parser.add_argument(
        "--sort", action="store_true", help="Sort portfolios and tickers alphabetically"
    )
    portfolio_parser.add_argument(
        "--open-only", action="store_true", help="Leave out positions with zero quantity"
    )
    portfolio_parser.set_defaults(func=cmd_portfolio)

    summary_parser = subparsers.add_parser(
        "summary", parents=[common], help="Summarize the open positions"
    )
    summary_parser.add_argument("-i", "--input", nargs="+", required=True, help="Input files")
    summary_parser.add_argument("-p", "--prices", nargs="+", help="Price files")
    summary_parser.add_argument(
        "--sort", action="store_true", help="Sort portfolios and tickers alphabetically"
    )
    summary_parser.add_argument(
        "-r",
        "--show-transactions",
        action="store_true",
        help="Show the transactions of the open positions",
    )
    summary_parser.add_argument(
        "-s",
        "--show-transaction-history",
        action="store_true",
        help="Show the full transaction history of the open positions",
    )
    summary_parser.set_defaults(func=cmd_summary)

    price_parser = subparsers.add_parser(
        "price", parents=[common], help="Download the latest price"
    )
    price_parser.add_argument(
        "-t", "--ticker", action="append", required=True, help="Ticker (repeatable)"
    )
    price_parser.set_defaults(func=cmd_price)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point, returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command in ("combine", "price") and not args.output:
        parser.error(f"{args.command} requires -o/--output")

    if args.verbose:
        os.environ["LOG_LEVEL"] = "DEBUG"
    setup_logging()

    try:
        settings = build_settings(args)
        return args.func(args, settings)
    except BookkeeperError as e:
        logger.error("%s", e)
        return 1
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
