"""
Inventory Store - Product and coin stock owned by the machine.

The store is the only place stock changes; readers get copies.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, Optional

from vending_machine.core.exceptions import (
    InsufficientCoinStockError,
    ProductIndexOutOfRangeError,
    ProductUnavailableError,
)
from vending_machine.core.value_objects import (
    CoinKind,
    CoinStack,
    ErrorCode,
    OperationResult,
    Product,
    ProductUnload,
    to_money,
)
from vending_machine.loggers import logger


# Called as confirm(item_label, requested, available) when a removal
# exceeds stock; True accepts removing everything that is available.
OverdrawConfirmation = Callable[[str, int, int], bool]


class InventoryStore:
    """
    Product and coin inventory.

    Products keep insertion order. Coins are kept sorted by descending
    value after every load.
    """

    def __init__(self, allow_negative_coin_load: bool = False) -> None:
        """
        Initialize an empty store.

        Args:
            allow_negative_coin_load: Accept negative quantities in
                ``load_coins`` as a forced removal.
        """
        self._products: dict[str, Product] = {}
        self._coins: dict[CoinKind, int] = {}
        self._allow_negative_coin_load = allow_negative_coin_load

    # =========================================================================
    # Products
    # =========================================================================

    def load_products(self, products: Optional[Iterable[Optional[Product]]]) -> OperationResult[int]:
        """
        Load products, adding stock to products already known by name.

        The price of a reloaded product is left unchanged.

        Returns:
            Result with the number of entries processed.
        """
        items = list(products) if products is not None else []
        if not items:
            return OperationResult.fail(
                ErrorCode.PRODUCT_LIST_EMPTY, "Product list cannot be null or empty."
            )
        if any(item is None for item in items):
            return OperationResult.fail(
                ErrorCode.PRODUCT_LIST_EMPTY, "One or more products are null."
            )

        loaded = 0
        for product in items:
            existing = self._products.get(product.name)
            if existing is None:
                self._products[product.name] = replace(product)
            else:
                if product.price != existing.price:
                    logger.info(
                        f"Keeping price {existing.price} for '{product.name}', "
                        f"ignoring reloaded price {product.price}"
                    )
                existing.stock += product.stock
            loaded += 1

        logger.info(f"Loaded {loaded} product entries")
        return OperationResult.ok(loaded)

    def unload_products(
        self,
        requests: Optional[Iterable[ProductUnload]],
        confirm: Optional[OverdrawConfirmation] = None,
    ) -> OperationResult[int]:
        """
        Remove product units from the machine.

        Removing more than is stocked empties and deletes the product only
        when ``confirm`` accepts it; otherwise that entry is skipped.

        Returns:
            Result with the number of units actually removed.
        """
        items = list(requests) if requests is not None else []
        if not items or any(item is None for item in items):
            return OperationResult.fail(
                ErrorCode.PRODUCT_LIST_EMPTY, "Product list cannot be null or empty."
            )

        removed = 0
        for request in items:
            product = self._products.get(request.name)
            if product is None:
                logger.info(f"Product '{request.name}' not found, skipping unload")
                continue
            if request.quantity <= 0:
                logger.warning(f"Ignoring non-positive unload of '{request.name}': {request.quantity}")
                continue

            if request.quantity <= product.stock:
                product.stock -= request.quantity
                removed += request.quantity
            elif confirm is not None and confirm(request.name, request.quantity, product.stock):
                removed += max(0, product.stock)
                del self._products[request.name]
                logger.info(f"Product '{request.name}' emptied and removed")
            else:
                logger.info(
                    f"Skipped unloading {request.quantity} of '{request.name}', "
                    f"only {product.stock} in stock"
                )

        return OperationResult.ok(removed)

    def get_product_name_by_index(self, index: int) -> str:
        """
        Return the name of the product at ``index`` in load order.

        Raises:
            ProductIndexOutOfRangeError: If the index is negative or past the end.
        """
        names = list(self._products)
        if index < 0 or index >= len(names):
            raise ProductIndexOutOfRangeError(index, len(names))
        return names[index]

    def get_product(self, name: str) -> Optional[Product]:
        """Return a copy of the named product, or None."""
        product = self._products.get(name)
        return replace(product) if product is not None else None

    def products(self) -> list[Product]:
        """Copies of all products in load order."""
        return [replace(product) for product in self._products.values()]

    @property
    def product_count(self) -> int:
        return len(self._products)

    def take_product(self, name: str) -> Product:
        """
        Take one unit of a product out of stock.

        Returns:
            Copy of the product after the decrement.

        Raises:
            ProductUnavailableError: If the product is unknown or out of stock.
        """
        product = self._products.get(name)
        if product is None:
            raise ProductUnavailableError(f"The product '{name}' does not exist.")
        if product.stock <= 0:
            raise ProductUnavailableError(f"The product '{name}' is out of stock.")
        product.stock -= 1
        return replace(product)

    def total_product_value(self) -> Decimal:
        return to_money(
            sum((product.price * product.stock for product in self._products.values()), Decimal("0"))
        )

    # =========================================================================
    # Coins
    # =========================================================================

    def load_coins(self, coins: Optional[Iterable[Optional[CoinStack]]]) -> OperationResult[int]:
        """
        Add coins to the machine.

        Returns:
            Result with the total quantity loaded.
        """
        items = list(coins) if coins is not None else []
        if not items:
            return OperationResult.fail(
                ErrorCode.COIN_LIST_EMPTY, "Coin list cannot be null or empty."
            )
        if any(item is None for item in items):
            return OperationResult.fail(ErrorCode.COIN_LIST_EMPTY, "Coin cannot be null.")
        if not self._allow_negative_coin_load and any(item.quantity < 0 for item in items):
            return OperationResult.fail(
                ErrorCode.COIN_LOADING_ERROR,
                "Coin quantity cannot be negative. Use unload to remove coins.",
            )

        loaded = 0
        for stack in items:
            self._coins[stack.kind] = self._coins.get(stack.kind, 0) + stack.quantity
            loaded += stack.quantity

        self._coins = dict(sorted(self._coins.items(), key=lambda item: item[0], reverse=True))
        logger.debug(f"Loaded {loaded} coins")
        return OperationResult.ok(loaded)

    def unload_coins(
        self,
        coins: Optional[Iterable[CoinStack]],
        confirm: Optional[OverdrawConfirmation] = None,
    ) -> OperationResult[int]:
        """
        Remove coins from the machine without driving any count negative.

        Requests above the available count are capped when ``confirm``
        accepts the cap, and skipped otherwise.

        Returns:
            Result with the number of coins actually removed.
        """
        items = list(coins) if coins is not None else []
        if not items or any(item is None for item in items):
            return OperationResult.fail(
                ErrorCode.COIN_LIST_EMPTY, "Coin list cannot be null or empty."
            )

        removed = 0
        for stack in items:
            available = self._coins.get(stack.kind)
            if available is None:
                logger.info(f"No {stack.kind.display_name} coins in machine, skipping unload")
                continue
            if stack.quantity <= 0:
                logger.warning(
                    f"Ignoring non-positive unload of {stack.kind.display_name}: {stack.quantity}"
                )
                continue

            if stack.quantity <= available:
                taken = stack.quantity
            elif confirm is not None and confirm(stack.kind.display_name, stack.quantity, available):
                taken = max(0, available)
            else:
                logger.info(
                    f"Skipped unloading {stack.quantity} x {stack.kind.display_name}, "
                    f"only {available} available"
                )
                continue

            self._coins[stack.kind] = available - taken
            removed += taken

        return OperationResult.ok(removed)

    def withdraw_coins(self, counts: dict[CoinKind, int]) -> None:
        """
        Remove exact coin counts, all or nothing.

        Raises:
            InsufficientCoinStockError: If any denomination falls short.
        """
        for kind, count in counts.items():
            available = self._coins.get(kind, 0)
            if count > available:
                raise InsufficientCoinStockError(
                    f"Not enough {kind.display_name} coins: need {count}, have {available}",
                    requested=count,
                    available=available,
                )
        for kind, count in counts.items():
            if count > 0:
                self._coins[kind] -= count

    def coins(self) -> dict[CoinKind, int]:
        """Copy of the coin counts, largest denomination first."""
        return dict(self._coins)

    def coin_count(self, kind: CoinKind) -> int:
        return self._coins.get(kind, 0)

    def total_coin_value(self) -> Decimal:
        return to_money(
            sum((kind.amount * count for kind, count in self._coins.items() if count > 0), Decimal("0"))
        )
