"""Runtime settings for the bookkeeping engine and its adapters."""

from dataclasses import dataclass, field, replace
import enum
import os

from dotenv import load_dotenv

from bookkeeper.data.models.currency import CurrencyRegistry
from bookkeeper.data.models.transaction import InventoryValuation
from bookkeeper.errors import ConfigurationError, InvalidInventoryValuationError

DEFAULT_DATE_PATTERN = "%Y-%m-%d %H:%M:%S"


class WriteMode(enum.Enum):
    """How an output file is written when it already exists."""

    OVERWRITE = "OVERWRITE"
    APPEND = "APPEND"
    STOP_IF_EXISTS = "STOP_IF_EXISTS"

    @classmethod
    def parse(cls, value) -> "WriteMode":
        """Convert a string token to a WriteMode."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ConfigurationError(f"Unknown write mode: '{value}'") from None


@dataclass(frozen=True)
class Settings:
    """Engine configuration.

    Attributes:
        inventory_valuation: Valuation used by sales without an explicit one
        base_currency: Report currency, its cash positions are priced at 1
        scale: Decimal places for monetary rounding (half-even)
        date_pattern: strftime pattern used by text readers and writers
        write_mode: Behaviour when the output file exists
        extra_currencies: Codes treated as currencies besides ISO 4217
    """

    inventory_valuation: InventoryValuation = InventoryValuation.FIFO
    base_currency: str = "EUR"
    scale: int = 2
    date_pattern: str = DEFAULT_DATE_PATTERN
    write_mode: WriteMode = WriteMode.OVERWRITE
    extra_currencies: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.scale < 0:
            raise ConfigurationError(f"Scale must not be negative: {self.scale}")
        if not self.currencies.is_currency(self.base_currency):
            raise ConfigurationError(f"Invalid base currency: '{self.base_currency}'")

    @property
    def currencies(self) -> CurrencyRegistry:
        """Currency registry including the extra codes."""
        return CurrencyRegistry(self.extra_currencies)

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from BOOKKEEPER_* environment variables."""
        load_dotenv()

        try:
            valuation = InventoryValuation.parse(
                os.getenv("BOOKKEEPER_INVENTORY_VALUATION", "FIFO")
            )
        except InvalidInventoryValuationError as e:
            raise ConfigurationError(e.message) from e

        scale_str = os.getenv("BOOKKEEPER_SCALE", "2")
        try:
            scale = int(scale_str)
        except ValueError:
            raise ConfigurationError(f"Invalid scale: '{scale_str}'") from None

        extra = os.getenv("BOOKKEEPER_EXTRA_CURRENCIES", "")

        return cls(
            inventory_valuation=valuation or InventoryValuation.FIFO,
            base_currency=os.getenv("BOOKKEEPER_BASE_CURRENCY", "EUR").strip().upper(),
            scale=scale,
            date_pattern=os.getenv("BOOKKEEPER_DATE_PATTERN", DEFAULT_DATE_PATTERN),
            write_mode=WriteMode.parse(os.getenv("BOOKKEEPER_WRITE_MODE", "OVERWRITE")),
            extra_currencies=tuple(c.strip().upper() for c in extra.split(",") if c.strip()),
        )
