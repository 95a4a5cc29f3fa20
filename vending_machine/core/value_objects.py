"""
Value Objects for the vending machine.

Denominations, products, coin stacks and operation results.
Monetary amounts are ``Decimal`` values with two decimal places.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum, IntEnum
from typing import Any, Final, Generic, Optional, TypeVar, Union


T = TypeVar("T")

CENT: Final[Decimal] = Decimal("0.01")


def to_money(amount: Union[Decimal, int, float, str]) -> Decimal:
    """
    Round an amount to two decimal places.

    Floats go through ``str`` first so ``0.1`` becomes ``0.10`` rather than
    its binary expansion.

    Raises:
        ValueError: If the amount is not a number.
    """
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_count(value: Any) -> int:
    """
    Convert a stock or coin quantity to ``int`` without truncating.

    Raises:
        ValueError: If the value is a bool or has a fractional part.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, Decimal) and (not value.is_finite() or value != value.to_integral_value()):
        raise ValueError(f"Invalid quantity: {value!r}")
    return int(value)


def format_money(amount: Decimal, symbol: str = "£") -> str:
    """Render an amount as ``£1.50``."""
    return f"{symbol}{to_money(amount):.2f}"


# =============================================================================
# Denominations
# =============================================================================


class CoinKind(IntEnum):
    """Accepted coins, valued in pence."""

    ONE_PENNY = 1
    TWO_PENCE = 2
    FIVE_PENCE = 5
    TEN_PENCE = 10
    TWENTY_PENCE = 20
    FIFTY_PENCE = 50
    ONE_POUND = 100
    TWO_POUNDS = 200

    @property
    def amount(self) -> Decimal:
        """Monetary value of the coin (``£1`` -> ``Decimal('1.00')``)."""
        return (Decimal(int(self)) / 100).quantize(CENT)

    @property
    def display_name(self) -> str:
        """Display name such as ``50p`` or ``£2``."""
        return COIN_NAMES[self]

    @classmethod
    def parse(cls, value: Any) -> "CoinKind":
        """
        Resolve a coin from a ``CoinKind``, its pence value or its display name.

        Raises:
            ValueError: If the value is not an accepted denomination.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            kind = _KIND_BY_NAME.get(value.strip())
            if kind is not None:
                return kind
            if value.strip().isdigit():
                value = int(value.strip())
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise ValueError(f"Invalid coin type: {value!r}")

    @classmethod
    def from_amount(cls, amount: Decimal) -> Optional["CoinKind"]:
        """Return the coin whose value equals ``amount``, or None."""
        return _KIND_BY_AMOUNT.get(to_money(amount))

    @classmethod
    def descending(cls) -> list["CoinKind"]:
        """All denominations, largest first."""
        return sorted(cls, reverse=True)


COIN_NAMES: Final[dict[CoinKind, str]] = {
    CoinKind.ONE_PENNY: "1p",
    CoinKind.TWO_PENCE: "2p",
    CoinKind.FIVE_PENCE: "5p",
    CoinKind.TEN_PENCE: "10p",
    CoinKind.TWENTY_PENCE: "20p",
    CoinKind.FIFTY_PENCE: "50p",
    CoinKind.ONE_POUND: "£1",
    CoinKind.TWO_POUNDS: "£2",
}

_KIND_BY_AMOUNT: Final[dict[Decimal, CoinKind]] = {kind.amount: kind for kind in CoinKind}
_KIND_BY_NAME: Final[dict[str, CoinKind]] = {name: kind for kind, name in COIN_NAMES.items()}


# =============================================================================
# Inventory Items
# =============================================================================


@dataclass
class Product:
    """
    A product slot in the machine.

    Attributes:
        name: Unique, case-sensitive product name.
        price: Unit price, rounded to two decimal places.
        stock: Units available.
    """

    name: str
    price: Decimal
    stock: int = 0

    def __post_init__(self) -> None:
        """Validate and normalize the product."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Product name cannot be empty")
        self.price = to_money(self.price)
        if self.price < 0:
            raise ValueError("Product price cannot be negative")
        self.stock = to_count(self.stock)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "price": str(self.price), "stock": self.stock}


@dataclass(frozen=True)
class ProductUnload:
    """Request to take ``quantity`` units of ``name`` out of the machine."""

    name: str
    quantity: int


@dataclass(frozen=True)
class CoinStack:
    """
    A number of coins of one denomination.

    Attributes:
        kind: Coin denomination.
        quantity: Number of coins.
    """

    kind: CoinKind
    quantity: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", CoinKind.parse(self.kind))
        object.__setattr__(self, "quantity", to_count(self.quantity))

    @property
    def value(self) -> Decimal:
        """Total value of the stack."""
        return to_money(self.kind.amount * self.quantity)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "coin": self.kind.display_name,
            "quantity": self.quantity,
            "value": str(self.value),
        }


# =============================================================================
# Operation Results
# =============================================================================


class ErrorCode(str, Enum):
    """Categories of operation failures."""

    NONE = "none"
    PRODUCT_LIST_EMPTY = "product_list_empty"
    COIN_LIST_EMPTY = "coin_list_empty"
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_OUT_OF_STOCK = "product_out_of_stock"
    INVALID_SELECTION = "invalid_selection"
    NO_PRODUCT_SELECTED = "no_product_selected"
    INVALID_COIN_TYPE = "invalid_coin_type"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CANNOT_GIVE_CHANGE = "cannot_give_change"
    COIN_LOADING_ERROR = "coin_loading_error"
    PRODUCT_DELIVERY_ERROR = "product_delivery_error"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    MACHINE_ERROR = "machine_error"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of an inventory or transaction operation.

    Attributes:
        success: Whether the operation succeeded.
        value: Operation value; failures may carry one too
            (the running total for ``INSUFFICIENT_FUNDS``).
        message: Human-readable message.
        error_code: Failure category, ``ErrorCode.NONE`` on success.
        details: Extra data such as dispensed change or refunded coins.
    """

    success: bool
    value: Optional[T] = None
    message: Optional[str] = None
    error_code: ErrorCode = ErrorCode.NONE
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        value: Optional[T] = None,
        message: Optional[str] = None,
        **details: Any,
    ) -> "OperationResult[T]":
        """Create a successful result."""
        return cls(success=True, value=value, message=message, details=details)

    @classmethod
    def fail(
        cls,
        error_code: ErrorCode,
        message: str,
        value: Optional[T] = None,
        **details: Any,
    ) -> "OperationResult[T]":
        """Create a failed result."""
        return cls(
            success=False,
            value=value,
            message=message,
            error_code=error_code,
            details=details,
        )

    @property
    def is_failure(self) -> bool:
        return not self.success

    @property
    def is_recoverable(self) -> bool:
        """True when the caller should keep the transaction going."""
        return self.error_code is ErrorCode.INSUFFICIENT_FUNDS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.value is not None:
            result["value"] = _jsonable(self.value)
        if not self.success:
            result["error"] = self.error_code.value
        if self.details:
            result["details"] = {key: _jsonable(item) for key, item in self.details.items()}
        return result


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, CoinKind):
        return value.display_name
    if isinstance(value, (Product, CoinStack)):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(_jsonable(key)): _jsonable(item) for key, item in value.items()}
    return value
