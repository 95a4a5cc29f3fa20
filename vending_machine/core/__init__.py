"""
Core module - Foundation layer with no internal dependencies.

Contains:
- Exceptions
- Value Objects (denominations, products, results)
"""

from .exceptions import (
    VendingMachineError,
    InventoryError,
    ProductIndexOutOfRangeError,
    InsufficientCoinStockError,
    ProductUnavailableError,
)
from .value_objects import (
    COIN_NAMES,
    CoinKind,
    CoinStack,
    ErrorCode,
    OperationResult,
    Product,
    ProductUnload,
    format_money,
    to_count,
    to_money,
)


__all__ = [
    # Exceptions
    "VendingMachineError",
    "InventoryError",
    "ProductIndexOutOfRangeError",
    "InsufficientCoinStockError",
    "ProductUnavailableError",
    # Value Objects
    "COIN_NAMES",
    "CoinKind",
    "CoinStack",
    "ErrorCode",
    "OperationResult",
    "Product",
    "ProductUnload",
    "format_money",
    "to_count",
    "to_money",
]
