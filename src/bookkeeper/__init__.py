"""Bookkeeper - Portfolio positions from transaction files."""

__version__ = "0.1.0"
__description__ = "Lot accounting and portfolio reports from transaction files"

# Analytics - core accounting tools
from .analytics.accounting.cash import Cash
from .analytics.accounting.fifo import FIFO
from .analytics.accounting.lifo import LIFO
from .analytics.accounting.strategy import ConsumptionStrategy, Lot
from .analytics.accounting.supply import LotSupply
from .analytics.analyzer import PortfolioAnalyzer
from .analytics.core.bookkeeping import BookkeepingSynthesizer, sort_by_trade_date
from .analytics.core.position import Position
from .analytics.core.price_manager import PriceManager
from .analytics.core.report import PortfolioReport, ReportBuilder

# Configuration - logging and settings
from .config.decorators import (
    LoggerMixin,
    log_api_calls,
    log_calls,
    log_performance,
)
from .config.logger import (
    LogFileConfig,
    get_logger,
    setup_logging,
)
from .config.settings import Settings, WriteMode

# Data access - external price providers
from .data.access.yf_api import YFinanceAPI

# Data management - file formats
from .data.managers.csv_manager import CSVManager
from .data.managers.excel_manager import ExcelManager
from .data.managers.markdown_manager import MarkdownManager

# Data models - core data structures
from .data.models.currency import CurrencyRegistry, is_currency
from .data.models.price import MarketPrice
from .data.models.transaction import (
    InventoryValuation,
    Transaction,
    TransactionType,
)

# Parsers and writers
from .data.parsers.price_parser import PriceParser
from .data.parsers.transaction_parser import TransactionParser, rename_portfolios
from .data.writers.report_writer import FileWriter, ReportWriter

# Errors
from .errors import (
    BookkeeperError,
    ConfigurationError,
    InvalidInventoryValuationError,
    InvalidTransactionError,
    InvalidTransactionTypeError,
    MarketDataError,
    OutputFileExistsError,
)

# Services - higher-level operations
from .services.data_transfers import ExportService, ImportService
from .services.portfolio import PortfolioService
from .services.service import Service

__all__ = [
    "FIFO",
    "LIFO",
    "BookkeeperError",
    "BookkeepingSynthesizer",
    "CSVManager",
    "Cash",
    "ConfigurationError",
    "ConsumptionStrategy",
    "CurrencyRegistry",
    "ExcelManager",
    "ExportService",
    "FileWriter",
    "ImportService",
    "InvalidInventoryValuationError",
    "InvalidTransactionError",
    "InvalidTransactionTypeError",
    "InventoryValuation",
    "LogFileConfig",
    "LoggerMixin",
    "Lot",
    "LotSupply",
    "MarkdownManager",
    "MarketDataError",
    "MarketPrice",
    "OutputFileExistsError",
    "PortfolioAnalyzer",
    "PortfolioReport",
    "PortfolioService",
    "Position",
    "PriceManager",
    "PriceParser",
    "ReportBuilder",
    "ReportWriter",
    "Service",
    "Settings",
    "Transaction",
    "TransactionParser",
    "TransactionType",
    "WriteMode",
    "YFinanceAPI",
    "get_logger",
    "is_currency",
    "log_api_calls",
    "log_calls",
    "log_performance",
    "rename_portfolios",
    "sort_by_trade_date",
    "setup_logging",
]
