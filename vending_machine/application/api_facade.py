"""
API Facade - Unified interface for the vending machine.

Accepts plain dictionaries and values, drives the inventory store and
transaction engine, and answers with response dictionaries.
"""

from typing import Any, Iterable, Optional

from vending_machine.application.reporting import InventoryReporter
from vending_machine.core.exceptions import ProductIndexOutOfRangeError
from vending_machine.core.value_objects import (
    CoinStack,
    ErrorCode,
    OperationResult,
    Product,
    ProductUnload,
    to_count,
)
from vending_machine.domain.inventory import InventoryStore
from vending_machine.domain.transaction_engine import TransactionEngine
from vending_machine.infrastructure.settings import (
    DEFAULT_COINS,
    DEFAULT_PRODUCTS,
    get_settings,
)
from vending_machine.loggers import logger


def _response(success: bool, message: Optional[str], data: Any = None) -> dict[str, Any]:
    return {"success": success, "message": message, "data": data}


def _from_result(result: OperationResult) -> dict[str, Any]:
    payload = result.to_dict()
    data = {key: item for key, item in payload.items() if key not in ("success", "message")}
    return _response(result.success, result.message, data or None)


def _to_product(item: Any) -> Product:
    if isinstance(item, Product):
        return item
    return Product(name=item["name"], price=item["price"], stock=item.get("stock", 0))


def _to_coin_stack(item: Any) -> CoinStack:
    if isinstance(item, CoinStack):
        return item
    return CoinStack(kind=item["coin"], quantity=item.get("quantity", 1))


def _to_unload(item: Any) -> ProductUnload:
    if isinstance(item, ProductUnload):
        return item
    return ProductUnload(name=item["name"], quantity=to_count(item["quantity"]))


class VendingMachineFacade:
    """
    Facade for the vending machine API.

    Owns one inventory store and the transaction engine working on it.
    """

    def __init__(
        self,
        inventory: Optional[InventoryStore] = None,
        engine: Optional[TransactionEngine] = None,
    ) -> None:
        """
        Initialize the facade.

        Args:
            inventory: Store to use; a new one is created if omitted.
            engine: Engine to use; built on ``inventory`` if omitted.
        """
        settings = get_settings()
        if engine is not None:
            inventory = engine.inventory
        self._inventory = inventory or InventoryStore(
            allow_negative_coin_load=settings.machine.allow_negative_coin_load
        )
        self._engine = engine or TransactionEngine(self._inventory)
        self._reporter = InventoryReporter(self._inventory)

    @property
    def inventory(self) -> InventoryStore:
        return self._inventory

    @property
    def engine(self) -> TransactionEngine:
        return self._engine

    # =========================================================================
    # Stocking
    # =========================================================================

    def load_products(self, products: Optional[Iterable[Any]]) -> dict[str, Any]:
        """
        Load products given as ``{"name", "price", "stock"}`` dictionaries.

        Returns:
            Response with the number of entries processed.
        """
        try:
            items = [None if item is None else _to_product(item) for item in products or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid product data: {e}")
            return _response(False, f"Invalid product data: {e}")
        return _from_result(self._inventory.load_products(items))

    def unload_products(
        self,
        products: Optional[Iterable[Any]],
        allow_partial: bool = False,
    ) -> dict[str, Any]:
        """
        Unload products given as ``{"name", "quantity"}`` dictionaries.

        Args:
            products: Removal requests.
            allow_partial: Empty a product when more is requested than stocked.
        """
        try:
            items = [_to_unload(item) for item in products or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid unload data: {e}")
            return _response(False, f"Invalid unload data: {e}")
        return _from_result(
            self._inventory.unload_products(items, confirm=lambda *_: bool(allow_partial))
        )

    def load_coins(self, coins: Optional[Iterable[Any]]) -> dict[str, Any]:
        """Load coins given as ``{"coin", "quantity"}`` dictionaries."""
        try:
            items = [None if item is None else _to_coin_stack(item) for item in coins or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid coin data: {e}")
            return _response(False, f"Invalid coin data: {e}")
        return _from_result(self._inventory.load_coins(items))

    def unload_coins(
        self,
        coins: Optional[Iterable[Any]],
        allow_partial: bool = False,
    ) -> dict[str, Any]:
        """Unload coins, capping over-requests only when ``allow_partial``."""
        try:
            items = [_to_coin_stack(item) for item in coins or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid coin data: {e}")
            return _response(False, f"Invalid coin data: {e}")
        return _from_result(
            self._inventory.unload_coins(items, confirm=lambda *_: bool(allow_partial))
        )

    def stock_defaults(self) -> dict[str, Any]:
        """Load the demo products and coins."""
        products = self.load_products(DEFAULT_PRODUCTS)
        coins = self.load_coins(DEFAULT_COINS)
        success = products["success"] and coins["success"]
        return _response(
            success,
            "Default stock loaded" if success else "Failed to load default stock",
            {"products": products["data"], "coins": coins["data"]},
        )

    # =========================================================================
    # Purchase Operations
    # =========================================================================

    def select_product(self, name: Optional[str]) -> dict[str, Any]:
        return _from_result(self._engine.select_product(name))

    def insert_coin(self, coin: Any) -> dict[str, Any]:
        """
        Insert a coin given as pence value, display name or ``CoinKind``.

        The response ``data.error`` is ``insufficient_funds`` while more
        coins are needed.
        """
        return _from_result(self._engine.insert_money(coin))

    def return_coins(self) -> dict[str, Any]:
        """Cancel the purchase and return the inserted coins."""
        coins = self._engine.return_inserted_coins()
        return _response(
            True,
            f"Returned {len(coins)} coins",
            {"coins": [coin.display_name for coin in coins]},
        )

    def can_give_change(self, amount: Any) -> dict[str, Any]:
        return _from_result(self._engine.can_give_change(amount))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_product_name_by_index(self, index: Any) -> dict[str, Any]:
        try:
            name = self._inventory.get_product_name_by_index(to_count(index))
        except (TypeError, ValueError):
            return _response(False, f"Invalid product index: {index}",
                             {"error": ErrorCode.INDEX_OUT_OF_RANGE.value})
        except ProductIndexOutOfRangeError as e:
            return _response(False, e.message, {"error": ErrorCode.INDEX_OUT_OF_RANGE.value})
        return _response(True, None, {"name": name})

    def product_status(self, include_index: bool = False, include_total: bool = False) -> dict[str, Any]:
        lines = self._reporter.product_status(
            include_index=bool(include_index), include_total=bool(include_total)
        )
        return _response(True, None, {"lines": lines})

    def coins_status(self, include_total: bool = True) -> dict[str, Any]:
        return _response(True, None, {"lines": self._reporter.coins_status(bool(include_total))})

    def machine_status(self) -> dict[str, Any]:
        """Products with index and total, coins with total, and transaction state."""
        return _response(
            True,
            None,
            {
                "products": self._reporter.product_status(include_index=True, include_total=True),
                "coins": self._reporter.coins_status(include_total=True),
                "phase": self._engine.phase.name.lower(),
                "inserted": str(self._engine.inserted_total),
            },
        )
