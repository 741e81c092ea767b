"""Transaction value record and its enums."""

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from decimal import Decimal
import enum

from bookkeeper.errors import InvalidInventoryValuationError, InvalidTransactionTypeError


class TransactionType(enum.Enum):
    """Enum of transaction types.

    CREDIT and DEBIT are synthetic cash legs generated by the engine, they
    never appear in source files.
    """

    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    FEE = "FEE"
    DIVIDEND = "DIVIDEND"
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    EXCHANGE = "EXCHANGE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value) -> "TransactionType":
        """Convert a string token to a TransactionType."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidTransactionTypeError(value) from None

    @property
    def is_synthetic(self) -> bool:
        """Whether the type is reserved for engine-generated legs."""
        return self in (TransactionType.CREDIT, TransactionType.DEBIT)


SOURCE_TYPES = frozenset(
    t for t in TransactionType if not t.is_synthetic and t is not TransactionType.UNKNOWN
)


class InventoryValuation(enum.Enum):
    """Lot consumption order applied to a sale or withdrawal."""

    FIFO = "FIFO"
    LIFO = "LIFO"

    @classmethod
    def parse(cls, value) -> "InventoryValuation | None":
        """Null safe conversion, blank values map to None."""
        if value is None or isinstance(value, cls):
            return value
        token = str(value).strip().upper()
        if not token:
            return None
        try:
            return cls(token)
        except ValueError:
            raise InvalidInventoryValuationError(value) from None


@dataclass(frozen=True)
class Transaction:
    """A single normalized ledger event.

    ``quantity`` is always a non-negative magnitude, the direction comes from
    ``tx_type``. For cash movements the ticker equals the currency code.
    """

    portfolio: str
    tx_type: TransactionType
    trade_date: datetime
    quantity: Decimal
    currency: str
    ticker: str
    price: Decimal | None = None
    fee: Decimal | None = None
    inventory_valuation: InventoryValuation | None = None
    transfer_id: str | None = None
    trade_id: str | None = None
    order_id: str | None = None

    def with_changes(self, **changes) -> "Transaction":
        """Return a copy of the transaction with the given fields replaced."""
        return replace(self, **changes)

    @property
    def has_fee(self) -> bool:
        """True when a non-zero fee is attached."""
        return self.fee is not None and self.fee != 0

    @property
    def identifiers(self) -> tuple[str | None, str | None, str | None]:
        """External correlation keys used to de-duplicate merged files."""
        return self.transfer_id, self.trade_id, self.order_id

    def to_dict(self) -> dict:
        """Flat dict with enum members converted to their values."""
        data = asdict(self)
        data["tx_type"] = self.tx_type.value
        data["inventory_valuation"] = (
            self.inventory_valuation.value if self.inventory_valuation else None
        )
        return data
