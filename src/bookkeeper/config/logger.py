"""Logging configuration for the bookkeeper command line tool.

Console logging is always on; a rotating log file is optional and
controlled through environment variables (a ``.env`` file is honoured).
"""

from datetime import datetime, timezone
import logging
import logging.handlers
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_LOGGER_NAME = "bookkeeper"

THIRD_PARTY_LOGGERS = ("yfinance", "urllib3", "peewee", "openpyxl")


class LogFileConfig:
    """Configuration class for log file management."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        load_dotenv()

        self.enabled = os.getenv("LOG_TO_FILE", "false").lower() == "true"

        # File rotation settings
        self.max_file_size = self._parse_size(os.getenv("LOG_MAX_FILE_SIZE", "10MB"))
        self.backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5"))
        self.rotation_type = os.getenv("LOG_ROTATION_TYPE", "size").lower()  # size, time

        # File organization
        self.log_dir = Path(os.getenv("LOG_DIR", "logs"))
        self.base_filename = os.getenv("LOG_BASE_FILENAME", "bookkeeper")
        self.file_pattern = os.getenv(
            "LOG_FILE_PATTERN", "{base}.log"
        )  # {base}.log, {base}-{date}.log

    def _parse_size(self, size_str: str) -> int:
        """Parse size string like '10MB', '1GB' to bytes."""
        size_str = size_str.upper().strip()

        if size_str.endswith("KB"):
            return int(size_str[:-2]) * 1024
        if size_str.endswith("MB"):
            return int(size_str[:-2]) * 1024 * 1024
        if size_str.endswith("GB"):
            return int(size_str[:-2]) * 1024 * 1024 * 1024
        # Assume bytes
        return int(size_str)

    def get_log_file_path(self) -> Path:
        """Get the main log file path."""
        if "{date}" in self.file_pattern:
            date_str = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d")
            filename = self.file_pattern.format(base=self.base_filename, date=date_str)
        else:
            filename = self.file_pattern.format(base=self.base_filename)

        return self.log_dir / filename

    def create_file_handler(self) -> logging.Handler:
        """Create a size or time based rotating file handler."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_file_path = self.get_log_file_path()

        if self.rotation_type == "time":
            return logging.handlers.TimedRotatingFileHandler(
                log_file_path,
                when="midnight",
                backupCount=self.backup_count,
                encoding="utf-8",
            )

        return logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8",
        )


def _resolve_level(level: str | int | None) -> int:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    if level is None:
        level = os.getenv("LOG_LEVEL", "").upper()

    if isinstance(level, int):
        return level
    if level and hasattr(logging, level.upper()):
        return getattr(logging, level.upper())
    return logging.INFO if environment == "production" else logging.WARNING


def setup_logging(config: LogFileConfig = None, level: str | int | None = None):
    """Set up logging for the whole application.

    Call this once at application startup.

    Args:
        config: Optional LogFileConfig for custom file management settings
        level: Console log level, overrides the LOG_LEVEL variable
    """
    load_dotenv()

    if config is None:
        config = LogFileConfig()

    console_level = _resolve_level(level)
    third_party_level = os.getenv("LOG_THIRD_PARTY_LEVEL", "WARNING").upper()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.propagate = False

    # Console handler with simple format, stderr keeps stdout clean for reports
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    if config.enabled:
        file_handler = config.create_file_handler()
        file_handler.setLevel(logging.DEBUG)  # Always capture all levels in file
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.config")
    logger.debug(
        "Logging initialized - Level: %s, file logging: %s",
        logging.getLevelName(console_level),
        config.get_log_file_path() if config.enabled else "disabled",
    )


def get_logger(name: str | None = None):
    """Get a logger for a module.

    Args:
        name: Logger name, typically __name__ from the calling module

    Returns:
        Logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("Something happened")
    """
    if name is None:
        name = ROOT_LOGGER_NAME
    elif callable(name):
        name = getattr(name, "__module__", ROOT_LOGGER_NAME)
    elif not isinstance(name, str):
        name = str(name)

    if not name.startswith(ROOT_LOGGER_NAME):
        # Ensure all loggers are under the 'bookkeeper' hierarchy
        name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME

    return logging.getLogger(name)
