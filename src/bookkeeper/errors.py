"""Exceptions raised by the bookkeeper package.

Exception Hierarchy:
    BookkeeperError (base)
    ├── InvalidTransactionError
    │   ├── InvalidTransactionTypeError
    │   └── InvalidInventoryValuationError
    ├── ConfigurationError
    ├── OutputFileExistsError
    └── MarketDataError

The engine raises these and never terminates the process itself; the CLI
decides how a failure is reported.
"""


class BookkeeperError(Exception):
    """Base exception for all bookkeeper errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidTransactionError(BookkeeperError, ValueError):
    """Raised when a transaction record cannot be interpreted."""


class InvalidTransactionTypeError(InvalidTransactionError):
    """Raised when a transaction type is unknown or not allowed in source input."""

    def __init__(self, value, context: str | None = None) -> None:
        self.value = value
        self.context = context
        message = f"Invalid transaction type: '{value}'"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class InvalidInventoryValuationError(InvalidTransactionError):
    """Raised when an inventory valuation token is not FIFO or LIFO."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f"Unknown inventory valuation type: '{value}'")


class ConfigurationError(BookkeeperError):
    """Raised for invalid settings or command line values."""


class OutputFileExistsError(BookkeeperError, FileExistsError):
    """Raised when the STOP_IF_EXISTS write mode meets an existing file."""

    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Output file already exists: {path}")


class MarketDataError(BookkeeperError):
    """Raised when a price provider returns nothing usable."""
