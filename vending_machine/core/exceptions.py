"""
Custom exceptions for the vending machine.

Expected domain conditions are reported through ``OperationResult``;
these exceptions cover precondition violations and internal stock errors.
"""

from typing import Any, Optional


class VendingMachineError(Exception):
    """Base exception for all vending machine errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            code: Optional error code for programmatic handling.
            details: Optional additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Inventory Errors
# =============================================================================


class InventoryError(VendingMachineError):
    """Base exception for inventory-related errors."""

    pass


class ProductIndexOutOfRangeError(InventoryError, IndexError):
    """A product index lookup fell outside the loaded products."""

    def __init__(self, index: int, count: int, **kwargs: Any) -> None:
        super().__init__(f"Invalid product index: {index}", **kwargs)
        self.index = index
        self.details["index"] = index
        self.details["product_count"] = count


class InsufficientCoinStockError(InventoryError):
    """A coin withdrawal asked for more coins than the machine holds."""

    def __init__(
        self,
        message: str,
        requested: int = 0,
        available: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.details["requested"] = requested
        self.details["available"] = available


class ProductUnavailableError(InventoryError):
    """A product could not be taken out of stock."""

    pass
